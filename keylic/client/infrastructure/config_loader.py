"""Infrastructure layer: Configuration loading.
"""

from __future__ import annotations

import logging

from keylic.client.domain.entities import AppIdentity
from keylic.common import Configurable, setup_logger
from keylic.common.config import Config
from keylic.common.exceptions import ConfigurationError
from keylic.common.models import ClientConfig

# Instance attribute -> Config attribute
CLIENT_SETTINGS = {
    "name": "APP_NAME",
    "owner_id": "OWNER_ID",
    "secret": "APP_SECRET",
    "version": "APP_VERSION",
    "api_url": "API_URL",
    "timeout": "TIMEOUT",
    "user_agent": "USER_AGENT",
    "log_level": "LOG_LEVEL",
}


class ConfigLoader(Configurable):
    """Merges explicit client settings over environment-backed defaults."""

    name: str | None
    owner_id: str | None
    secret: str | None
    version: str
    api_url: str
    timeout: float
    user_agent: str
    log_level: int

    def __init__(self, client_config: ClientConfig):
        self.config: Config = Config()
        self.apply_overrides(client_config.overrides(), self.config, CLIENT_SETTINGS)
        self.on_error_callback = client_config.on_error_callback

        missing = [
            attr for attr in ("name", "owner_id", "secret") if not getattr(self, attr)
        ]
        if missing:
            msg = f"Missing application settings: {', '.join(missing)}"
            raise ConfigurationError(msg)
        if not self.api_url:
            msg = "API url must not be empty"
            raise ConfigurationError(msg)

        # Setup logging
        self.logger = logging.getLogger("keylic")
        setup_logger(self.logger, self.log_level)

    @property
    def identity(self) -> AppIdentity:
        assert self.name is not None
        assert self.owner_id is not None
        return AppIdentity(name=self.name, owner_id=self.owner_id, version=self.version)
