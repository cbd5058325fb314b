"""Common cryptographic utilities.
"""

from __future__ import annotations

import uuid

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac


def _to_bytes(value: bytes | str) -> bytes:
    return value.encode() if isinstance(value, str) else value


class CryptoUtils:
    """Utility class for cryptographic operations."""

    @staticmethod
    def generate_ephemeral_key() -> str:
        """Fresh per-session token sent as ``enckey`` during init."""
        return uuid.uuid4().hex

    @staticmethod
    def derive_session_key(
        ephemeral_key: str, secret: str, separator: str = "-"
    ) -> str:
        """Key that authenticates every response after init."""
        if not ephemeral_key:
            msg = "ephemeral key is required to derive the session key"
            raise ValueError(msg)
        return f"{ephemeral_key}{separator}{secret}"

    @staticmethod
    def sign(message: bytes | str, key: bytes | str) -> str:
        """HMAC-SHA256 of message under key, as lowercase hex."""
        mac = hmac.HMAC(_to_bytes(key), hashes.SHA256())
        mac.update(_to_bytes(message))
        return mac.finalize().hex()

    @staticmethod
    def verify(message: bytes | str, key: bytes | str, signature: str) -> bool:
        """Constant-time check of a hex signature against message and key."""
        try:
            expected = bytes.fromhex(signature.strip())
        except ValueError:
            return False
        mac = hmac.HMAC(_to_bytes(key), hashes.SHA256())
        mac.update(_to_bytes(message))
        try:
            mac.verify(expected)
        except InvalidSignature:
            return False
        return True
