"""
Configuration settings for the KeyAuth client.
"""

from __future__ import annotations

import logging
import os


class Config:
    """Central configuration class for all system settings."""

    def __init__(self) -> None:
        # Application identity, normally supplied by the caller
        self.APP_NAME: str | None = os.getenv("KEYLIC_APP_NAME")
        self.OWNER_ID: str | None = os.getenv("KEYLIC_OWNER_ID")
        self.APP_SECRET: str | None = os.getenv("KEYLIC_APP_SECRET")
        self.APP_VERSION: str = os.getenv("KEYLIC_APP_VERSION", "1.0")
        self.API_URL: str = os.getenv("KEYLIC_API_URL", "https://keyauth.win/api/1.2/")

        # Transport settings
        self.TIMEOUT: float = float(os.getenv("KEYLIC_TIMEOUT", "10"))
        self.USER_AGENT: str = "KeyAuth"

        # Protocol constants
        self.KEY_SEPARATOR: str = "-"  # derived key = enckey + separator + secret
        self.SIGNATURE_HEADER: str = "signature"
        self.INVALID_APPLICATION_BODY: str = "KeyAuth_Invalid"
        self.VERSION_MISMATCH_MESSAGE: str = "invalidver"
        self.HWID_KEY: str = "mykey"

        # Browser login listener
        self.WEB_LOADER_HOST: str = "127.0.0.1"
        self.WEB_LOADER_PORT: int = 1337

        # Local mock API server
        self.MOCK_SERVER_HOST: str = os.getenv("KEYLIC_MOCK_HOST", "127.0.0.1")
        self.MOCK_SERVER_PORT: int = int(os.getenv("KEYLIC_MOCK_PORT", "8000"))
        self.MOCK_SERVER_URL: str = (
            f"http://{self.MOCK_SERVER_HOST}:{self.MOCK_SERVER_PORT}/api/1.2/"
        )

        # Logging
        self.LOG_LEVEL: int = logging.INFO
