"""Infrastructure layer: HTTP transport for the API.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import requests

from keylic.common.config import Config
from keylic.common.exceptions import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Response body plus headers, header names lower-cased."""

    body: bytes
    headers: dict[str, str] = field(default_factory=dict)
    status_code: int = 200


class RequestsTransport:
    """Sends form-encoded POST requests with ``requests``."""

    def __init__(self, timeout: float | None = None, user_agent: str | None = None):
        config = Config()
        self.timeout = timeout if timeout is not None else config.TIMEOUT
        self.user_agent = user_agent or config.USER_AGENT

    def exchange(self, url: str, fields: Sequence[tuple[str, str]]) -> TransportResponse:
        """POST the fields to url; never retries."""
        headers = {
            "User-Agent": self.user_agent,
            "Content-Type": "application/x-www-form-urlencoded",
        }
        try:
            r = requests.post(
                url, data=list(fields), headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error("Request to %s failed: %s", url, e)
            msg = f"request to {url} failed: {e}"
            raise TransportError(msg) from e

        logger.debug("POST %s -> %s", url, r.status_code)
        return TransportResponse(
            body=r.content,
            headers={k.lower(): v for k, v in r.headers.items()},
            status_code=r.status_code,
        )
