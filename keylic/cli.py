"""
Command-line interface for keylic.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from keylic.client.client import KeyAuthClient
from keylic.client.infrastructure.hwid import HardwareIdentifier
from keylic.common.config import Config
from keylic.common.exceptions import (
    IntegrityError,
    KeyAuthError,
    VersionMismatchError,
)
from keylic.common.models import ClientConfig

TAMPERED_EXIT_CODE = 3


class TamperedResponse(click.ClickException):
    """A response failed verification; the session was aborted."""

    exit_code = TAMPERED_EXIT_CODE


@contextmanager
def reported_errors() -> Iterator[None]:
    try:
        yield
    except IntegrityError as e:
        raise TamperedResponse(str(e)) from e
    except VersionMismatchError as e:
        msg = "Application version is outdated"
        if e.download_url:
            msg += f", download the update from {e.download_url}"
        raise click.ClickException(msg) from e
    except KeyAuthError as e:
        raise click.ClickException(str(e)) from e


def _open_session(ctx: click.Context, app_hash: str | None = None) -> KeyAuthClient:
    client = KeyAuthClient(client_config=ctx.obj)
    client.init(app_hash)
    return client


def _echo_account(client: KeyAuthClient) -> None:
    account = client.account
    if account is None:
        return
    click.echo(f"Username: {account.username}")
    click.echo(f"IP: {account.ip}")
    click.echo(f"Subscription: {account.subscription}")
    click.echo(f"Time left: {account.sub_time_left}s")
    click.echo(f"Expiry: {account.expiry}")


@click.group()
@click.option("--name", envvar="KEYLIC_APP_NAME", help="Application name")
@click.option("--owner-id", envvar="KEYLIC_OWNER_ID", help="Owner id")
@click.option("--secret", envvar="KEYLIC_APP_SECRET", help="Application secret")
@click.option("--app-version", envvar="KEYLIC_APP_VERSION", help="Declared version")
@click.option("--api-url", envvar="KEYLIC_API_URL", help="API base url")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    name: str | None,
    owner_id: str | None,
    secret: str | None,
    app_version: str | None,
    api_url: str | None,
    verbose: bool,  # noqa: FBT001
) -> None:
    """KeyAuth API client"""
    ctx.obj = ClientConfig(
        name=name,
        owner_id=owner_id,
        secret=secret,
        version=app_version,
        api_url=api_url,
        log_level=logging.DEBUG if verbose else logging.WARNING,
    )


@cli.command()
def hwid() -> None:
    """Print this machine's hardware id"""
    with reported_errors():
        click.echo(HardwareIdentifier().generate())


@cli.command()
@click.option("--hash", "app_hash", default=None, help="Application file hash")
@click.pass_context
def init(ctx: click.Context, app_hash: str | None) -> None:
    """Initialize a session and show application info"""
    with reported_errors():
        client = _open_session(ctx, app_hash)
    info = client.app_info
    click.echo(f"Session: {client.session_id}")
    if info is not None:
        click.echo(f"Users: {info.num_users}")
        click.echo(f"Online users: {info.num_online_users}")
        click.echo(f"Keys: {info.num_keys}")


@cli.command()
@click.option("--username", prompt=True)
@click.option("--password", prompt=True, hide_input=True)
@click.option("--hwid", "hwid_value", default=None, help="Use this hwid instead of computing one")
@click.pass_context
def login(ctx: click.Context, username: str, password: str, hwid_value: str | None) -> None:
    """Log in with username and password"""
    with reported_errors():
        client = _open_session(ctx)
        client.login(username, password, hwid_value)
    _echo_account(client)


@cli.command(name="license")
@click.option("--key", prompt=True)
@click.option("--hwid", "hwid_value", default=None, help="Use this hwid instead of computing one")
@click.pass_context
def license_command(ctx: click.Context, key: str, hwid_value: str | None) -> None:
    """Log in with a license key"""
    with reported_errors():
        client = _open_session(ctx)
        client.license(key, hwid_value)
    _echo_account(client)


@cli.command()
@click.option("--username", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--key", prompt=True)
@click.option("--hwid", "hwid_value", default=None, help="Use this hwid instead of computing one")
@click.pass_context
def register(
    ctx: click.Context, username: str, password: str, key: str, hwid_value: str | None
) -> None:
    """Register a new user with a license key"""
    with reported_errors():
        client = _open_session(ctx)
        client.register(username, password, key, hwid_value)
    _echo_account(client)


@cli.command()
@click.argument("var_id")
@click.pass_context
def var(ctx: click.Context, var_id: str) -> None:
    """Print a global application variable"""
    with reported_errors():
        click.echo(_open_session(ctx).var(var_id))


@cli.command()
@click.argument("file_id")
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path), required=True
)
@click.pass_context
def file(ctx: click.Context, file_id: str, output: Path) -> None:
    """Download an application file"""
    with reported_errors():
        data = _open_session(ctx).file(file_id)
    output.write_bytes(data)
    click.echo(f"Saved {len(data)} bytes to {output}")


@cli.command()
@click.option("--key", prompt=True, help="License key to validate the session with")
@click.pass_context
def check(ctx: click.Context, key: str) -> None:
    """Activate a license and ask the server whether the session is valid"""
    with reported_errors():
        client = _open_session(ctx)
        client.license(key)
        valid = client.check()
    click.echo("Session is valid" if valid else f"Session is invalid: {client.last_message}")


@cli.command(name="serve-mock")
@click.option("--host", envvar="KEYLIC_MOCK_HOST", help="Host to bind")
@click.option("--port", envvar="KEYLIC_MOCK_PORT", type=int, help="Port to bind")
@click.option("--user", "users", multiple=True, help="Seed user as USERNAME:PASSWORD")
@click.option("--license-key", "license_keys", multiple=True, help="Seed license key")
@click.option("--variable", "variables", multiple=True, help="Seed variable as ID=VALUE")
@click.pass_context
def serve_mock(
    ctx: click.Context,
    host: str | None,
    port: int | None,
    users: tuple[str, ...],
    license_keys: tuple[str, ...],
    variables: tuple[str, ...],
) -> None:
    """Start a local mock of the API"""
    from keylic.server import MockAuthServer, start_server  # noqa: PLC0415

    settings: ClientConfig = ctx.obj
    name, owner_id, secret = settings.name, settings.owner_id, settings.secret
    if not (name and owner_id and secret):
        msg = "--name, --owner-id and --secret are required to serve a mock API"
        raise click.ClickException(msg)

    server = MockAuthServer(
        name, owner_id, secret, settings.version or Config().APP_VERSION
    )
    for entry in users:
        username, _, password = entry.partition(":")
        server.service.add_user(username, password)
    for key in license_keys:
        server.service.add_license(key)
    for entry in variables:
        var_id, _, value = entry.partition("=")
        server.service.variables[var_id] = value

    start_server(server, host, port)


if __name__ == "__main__":
    cli()
