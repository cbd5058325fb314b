import pytest
from fastapi.testclient import TestClient

from keylic.client.infrastructure.web_loader import WebLoaderListener
from keylic.common.exceptions import WebLoginError


@pytest.fixture
def listener() -> WebLoaderListener:
    return WebLoaderListener(port=18337, timeout=0.1)


def test_defaults_from_config() -> None:
    listener = WebLoaderListener()
    assert listener.host == "127.0.0.1"
    assert listener.port == 1337  # noqa: PLR2004


def test_handshake_records_credentials(listener: WebLoaderListener) -> None:
    client = TestClient(listener.app)

    response = client.get("/handshake", params={"user": "alice", "token": "tok-1"})

    assert response.status_code == 200  # noqa: PLR2004
    assert response.text == "OK"
    assert response.headers["access-control-allow-origin"] == "*"
    assert listener._credentials == ("alice", "tok-1")


def test_handshake_requires_user_and_token(listener: WebLoaderListener) -> None:
    client = TestClient(listener.app)

    response = client.get("/handshake", params={"user": "alice"})

    assert response.status_code == 400  # noqa: PLR2004
    assert listener._credentials is None


def test_unknown_button_is_not_found(listener: WebLoaderListener) -> None:
    client = TestClient(listener.app)
    assert client.get("/close").status_code == 404  # noqa: PLR2004


def test_waited_button_is_pressed(listener: WebLoaderListener) -> None:
    listener._button = "close"
    client = TestClient(listener.app)
    assert client.get("/close").status_code == 200  # noqa: PLR2004
    assert listener._button_pressed


def test_receive_without_handshake_times_out(
    listener: WebLoaderListener, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(listener, "_serve", lambda: None)
    with pytest.raises(WebLoginError):
        listener.receive()


def test_receive_returns_pair(
    listener: WebLoaderListener, monkeypatch: pytest.MonkeyPatch
) -> None:
    def serve() -> None:
        TestClient(listener.app).get(
            "/handshake", params={"user": "alice", "token": "tok-1"}
        )

    monkeypatch.setattr(listener, "_serve", serve)
    assert listener.receive() == ("alice", "tok-1")
