"""
Custom exceptions for the KeyAuth client.
"""

from __future__ import annotations


class KeyAuthError(Exception):
    """Base class for every error raised by keylic."""


class ConfigurationError(KeyAuthError, ValueError):
    """Exception for missing or invalid client settings."""


class TransportError(KeyAuthError):
    """The HTTP exchange itself failed (connection, timeout, ...)."""


class IntegrityError(KeyAuthError):
    """Response signature missing or not matching; the session is no longer trusted."""

    def __init__(self, message: str = "response was tampered with") -> None:
        super().__init__(message)


class SessionStateError(KeyAuthError):
    """Operation attempted in a state that does not allow it."""


class SessionTerminatedError(SessionStateError):
    """The session was terminated after an integrity failure."""


class ApplicationError(KeyAuthError):
    """Verified rejection from the server (wrong password, invalid key, ...)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class VersionMismatchError(ApplicationError):
    """Declared application version is outdated."""

    def __init__(self, message: str, download_url: str | None = None) -> None:
        super().__init__(message)
        self.download_url = download_url


class MalformedPayloadError(KeyAuthError):
    """Verified response does not match the expected contract."""


class HardwareIdError(KeyAuthError):
    """No stable machine identifier could be read."""


class WebLoginError(KeyAuthError):
    """The browser login listener did not receive a handshake."""


class LicenseInactiveError(KeyAuthError):
    """Raised by guard decorators when no license is active."""
