import json
from collections.abc import Sequence
from typing import Any

import pytest

from keylic.client.client import KeyAuthClient
from keylic.client.infrastructure.transport import TransportResponse
from keylic.common.crypto import CryptoUtils

SECRET = "S"
ENCKEY = "E"
SESSION_KEY = "E-S"
API_URL = "https://api.test/api/1.2/"

INIT_OK = {
    "success": True,
    "message": "Initialized",
    "sessionid": "abc123",
    "appinfo": {
        "numUsers": "5",
        "numOnlineUsers": "1",
        "numKeys": "10",
        "version": "1.0",
        "customerPanelLink": "https://panel.test/",
    },
}

LOGIN_OK = {
    "success": True,
    "message": "Logged in!",
    "info": {
        "username": "alice",
        "ip": "10.0.0.1",
        "hwid": "HW-1",
        "createdate": "1600000000",
        "lastlogin": "1700000000",
        "subscriptions": [
            {"subscription": "premium", "timeleft": 86400, "expiry": "2030-01-01"}
        ],
    },
}


def signed(payload: Any, key: str) -> TransportResponse:
    """Response whose body is signed with key."""
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return TransportResponse(body=body, headers={"signature": CryptoUtils.sign(body, key)})


def unsigned(payload: Any) -> TransportResponse:
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return TransportResponse(body=body)


class FakeTransport:
    """Records requests and replays queued responses."""

    def __init__(self) -> None:
        self.requests: list[tuple[str, list[tuple[str, str]]]] = []
        self.responses: list[TransportResponse | Exception] = []

    def queue(self, *responses: TransportResponse | Exception) -> None:
        self.responses.extend(responses)

    def exchange(self, url: str, fields: Sequence[tuple[str, str]]) -> TransportResponse:
        self.requests.append((url, list(fields)))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def sent(self, index: int = -1) -> dict[str, str]:
        return dict(self.requests[index][1])


class FakeHwid:
    def __init__(self, value: str = "HW-1") -> None:
        self.value = value
        self.calls = 0

    def generate(self) -> str:
        self.calls += 1
        return self.value


@pytest.fixture
def fixed_enckey(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(
        CryptoUtils, "generate_ephemeral_key", staticmethod(lambda: ENCKEY)
    )
    return ENCKEY


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport, fixed_enckey: str) -> KeyAuthClient:
    """Uninitialized client talking to the fake transport."""
    return KeyAuthClient(
        "App",
        "O",
        SECRET,
        "1.0",
        API_URL,
        transport=transport,
        hwid_provider=FakeHwid(),
    )


@pytest.fixture
def active_client(client: KeyAuthClient, transport: FakeTransport) -> KeyAuthClient:
    """Client with an initialized session ``abc123``."""
    transport.queue(signed(INIT_OK, SECRET))
    client.init()
    return client
