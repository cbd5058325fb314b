"""
Interfaces and protocols for the client's external collaborators.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol


class ITransportResponse(Protocol):
    """Raw result of one exchange."""

    body: bytes
    headers: Mapping[str, str]


class ITransport(Protocol):
    """Sends one form-encoded request and returns body plus headers."""

    def exchange(
        self, url: str, fields: Sequence[tuple[str, str]]
    ) -> ITransportResponse: ...


class IHardwareIdentifier(Protocol):
    """Produces a stable identifier for this machine."""

    def generate(self) -> str: ...


class ICallbackListener(Protocol):
    """Receives one username/token pair from the browser, then stops listening."""

    def receive(self) -> tuple[str, str]: ...
