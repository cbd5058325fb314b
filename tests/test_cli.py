from unittest.mock import Mock

import pytest
from click.testing import CliRunner

from keylic import cli as cli_module
from keylic.cli import TAMPERED_EXIT_CODE, cli
from keylic.client.domain.entities import AccountFacts
from keylic.common.exceptions import ApplicationError, IntegrityError, VersionMismatchError
from keylic.common.models import AppInfo

APP_ARGS = ["--name", "App", "--owner-id", "O", "--secret", "S"]

FACTS = AccountFacts(
    username="alice",
    ip="10.0.0.1",
    hwid="HW",
    create_date="1",
    last_login="2",
    subscription="premium",
    sub_time_left=86400,
    expiry="2030-01-01",
    subscriptions=("premium",),
)


@pytest.fixture
def fake_client(monkeypatch: pytest.MonkeyPatch) -> Mock:
    """Replace KeyAuthClient in the CLI with a mock."""
    client = Mock()
    client.session_id = "abc123"
    client.app_info = AppInfo(numUsers="5", numOnlineUsers="1", numKeys="10")
    client.account = FACTS
    factory = Mock(return_value=client)
    monkeypatch.setattr(cli_module, "KeyAuthClient", factory)
    client.factory = factory
    return client


def test_cli_help():
    """Test CLI help command."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "Usage:" in result.output
    for command in ("hwid", "init", "login", "license", "var", "file", "serve-mock"):
        assert command in result.output


def test_cli_init(fake_client):
    result = CliRunner().invoke(cli, [*APP_ARGS, "init", "--hash", "deadbeef"])

    assert result.exit_code == 0
    assert "Session: abc123" in result.output
    assert "Users: 5" in result.output
    fake_client.init.assert_called_once_with("deadbeef")
    settings = fake_client.factory.call_args.kwargs["client_config"]
    assert settings.name == "App"
    assert settings.owner_id == "O"


def test_cli_login(fake_client):
    result = CliRunner().invoke(
        cli, [*APP_ARGS, "login", "--username", "alice", "--password", "pw"]
    )

    assert result.exit_code == 0
    assert "Subscription: premium" in result.output
    fake_client.login.assert_called_once_with("alice", "pw", None)


def test_cli_license_prompts_for_key(fake_client):
    result = CliRunner().invoke(cli, [*APP_ARGS, "license"], input="KEY-1\n")

    assert result.exit_code == 0
    fake_client.license.assert_called_once_with("KEY-1", None)


def test_cli_rejection_is_reported(fake_client):
    fake_client.login.side_effect = ApplicationError("invalid")

    result = CliRunner().invoke(
        cli, [*APP_ARGS, "login", "--username", "alice", "--password", "pw"]
    )

    assert result.exit_code == 1
    assert "invalid" in result.output


def test_cli_tampered_response_exit_code(fake_client):
    fake_client.init.side_effect = IntegrityError()

    result = CliRunner().invoke(cli, [*APP_ARGS, "init"])

    assert result.exit_code == TAMPERED_EXIT_CODE
    assert "tampered" in result.output


def test_cli_version_mismatch_shows_download(fake_client):
    fake_client.init.side_effect = VersionMismatchError("invalidver", "https://dl.test/")

    result = CliRunner().invoke(cli, [*APP_ARGS, "init"])

    assert result.exit_code == 1
    assert "https://dl.test/" in result.output


def test_cli_var(fake_client):
    fake_client.var.return_value = "Welcome"
    result = CliRunner().invoke(cli, [*APP_ARGS, "var", "motd"])
    assert result.exit_code == 0
    assert "Welcome" in result.output


def test_cli_file(fake_client, tmp_path):
    fake_client.file.return_value = b"\x00\x01"
    output = tmp_path / "download.bin"

    result = CliRunner().invoke(cli, [*APP_ARGS, "file", "7", "--output", str(output)])

    assert result.exit_code == 0
    assert output.read_bytes() == b"\x00\x01"
    fake_client.file.assert_called_once_with("7")


def test_cli_check(fake_client):
    fake_client.check.return_value = True
    result = CliRunner().invoke(cli, [*APP_ARGS, "check", "--key", "KEY-1"])
    assert result.exit_code == 0
    assert "Session is valid" in result.output


def test_cli_hwid(monkeypatch):
    monkeypatch.setattr(
        cli_module.HardwareIdentifier, "generate", lambda self: "HWID-VALUE"
    )
    result = CliRunner().invoke(cli, ["hwid"])
    assert result.exit_code == 0
    assert "HWID-VALUE" in result.output


def test_cli_serve_mock_requires_app_settings(monkeypatch):
    for name in ("KEYLIC_APP_NAME", "KEYLIC_OWNER_ID", "KEYLIC_APP_SECRET"):
        monkeypatch.delenv(name, raising=False)
    result = CliRunner().invoke(cli, ["serve-mock"])
    assert result.exit_code == 1
    assert "required" in result.output


def test_cli_serve_mock_seeds_server(monkeypatch):
    started = {}

    def fake_start(server, host, port):
        started["server"] = server
        started["port"] = port

    monkeypatch.setattr("keylic.server.start_server", fake_start)
    result = CliRunner().invoke(
        cli,
        [
            *APP_ARGS,
            "serve-mock",
            "--port",
            "9001",
            "--user",
            "alice:pw",
            "--license-key",
            "KEY-1",
            "--variable",
            "motd=Hello",
        ],
    )

    assert result.exit_code == 0
    service = started["server"].service
    assert started["port"] == 9001  # noqa: PLR2004
    assert service.users["alice"].password == "pw"
    assert "KEY-1" in service.licenses
    assert service.variables["motd"] == "Hello"
