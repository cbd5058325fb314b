"""
Mock KeyAuth API server using FastAPI.

Speaks the same wire format as the hosted service: form-encoded POST
requests in, JSON out, with an HMAC-SHA256 ``signature`` header computed
with the application secret for init and ``enckey-secret`` afterwards.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any
from urllib.parse import parse_qsl

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from keylic.common import setup_logger
from keylic.common.config import Config
from keylic.common.crypto import CryptoUtils
from keylic.common.exceptions import ApplicationError, VersionMismatchError

from .services import MockAuthService

API_PATHS = ("/", "/api/1.2/")


class MockAuthServer:
    """Local stand-in for the remote API, for development and tests."""

    def __init__(
        self,
        name: str,
        owner_id: str,
        secret: str,
        version: str = "1.0",
        download_url: str = "",
        log_level: int | None = None,
        config: Config | None = None,
    ):
        self.config = config or Config()
        self.logger = logging.getLogger(__name__)
        setup_logger(
            self.logger, log_level if log_level is not None else self.config.LOG_LEVEL
        )
        self.name = name
        self.owner_id = owner_id
        self.secret = secret
        self.service = MockAuthService(version, download_url, self.logger)

        self.app = FastAPI()
        self._setup_routes()

    def _setup_routes(self) -> None:
        """Setup API routes."""

        @self.app.get("/health")
        def health() -> dict[str, Any]:
            return {"status": "ok", "timestamp": int(time.time())}

        for path in API_PATHS:
            self.app.post(path)(self.handle)

    async def handle(self, request: Request) -> Response:
        """Handle one API call."""
        body = await request.body()
        fields = dict(parse_qsl(body.decode(), keep_blank_values=True))
        kind = fields.get("type", "")

        if fields.get("name") != self.name or fields.get("ownerid") != self.owner_id:
            return PlainTextResponse(self.config.INVALID_APPLICATION_BODY)

        if kind == "init":
            return self._signed(self._dispatch_init(fields), self.secret)

        session = self.service.sessions.get(fields.get("sessionid", ""))
        if session is None:
            payload = {"success": False, "message": "Invalid session."}
            return self._signed(payload, self.secret)

        key = CryptoUtils.derive_session_key(
            session.enckey, self.secret, self.config.KEY_SEPARATOR
        )
        handler = self.service.handlers.get(kind)
        if handler is None:
            return self._signed({"success": False, "message": "Unknown type"}, key)
        try:
            payload = {"success": True, **handler(session, fields)}
        except ApplicationError as e:
            payload = {"success": False, "message": e.message}
        self.logger.debug("%s -> %s", kind, payload["message"])
        return self._signed(payload, key)

    def _dispatch_init(self, fields: dict[str, str]) -> dict[str, Any]:
        try:
            return {"success": True, **self.service.init(fields)}
        except VersionMismatchError as e:
            return {
                "success": False,
                "message": e.message,
                "download": e.download_url or "",
            }
        except ApplicationError as e:
            return {"success": False, "message": e.message}

    @staticmethod
    def _signed(payload: dict[str, Any], key: str) -> Response:
        body = json.dumps(payload).encode()
        return Response(
            content=body,
            media_type="application/json",
            headers={"signature": CryptoUtils.sign(body, key)},
        )
