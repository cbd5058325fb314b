# KeyAuth API client

from keylic.client.client import KeyAuthClient
from keylic.client.infrastructure.web_loader import WebLoaderListener
from keylic.common.decorators import (
    license_protected,
    requires_active_license,
)

__all__ = [
    "KeyAuthClient",
    "WebLoaderListener",
    "license_protected",
    "requires_active_license",
]
