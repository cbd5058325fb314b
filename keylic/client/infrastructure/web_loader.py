"""Infrastructure layer: Local callback listener for the browser login flow.

The listener serves a tiny FastAPI app on localhost. The browser calls
``/handshake?user=...&token=...`` once the user authenticated on the web
page; the listener records the pair, answers with a static body and stops.
It plays no part in response verification.
"""

from __future__ import annotations

import logging
import threading

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from keylic.common.config import Config
from keylic.common.exceptions import WebLoginError

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Methods": "GET, POST",
    "Access-Control-Allow-Origin": "*",
}


class WebLoaderListener:
    """Receives one username/token pair, then stops listening."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        timeout: float | None = None,
        response_body: str = "OK",
    ):
        config = Config()
        self.host = host or config.WEB_LOADER_HOST
        self.port = port or config.WEB_LOADER_PORT
        self.timeout = timeout
        self.response_body = response_body

        self._credentials: tuple[str, str] | None = None
        self._button: str | None = None
        self._button_pressed = False
        self._server: uvicorn.Server | None = None

        self.app = FastAPI()
        self.app.get("/handshake")(self.handshake)
        self.app.get("/{name}")(self.button)

    async def handshake(self, user: str = "", token: str = "") -> PlainTextResponse:
        """Handle /handshake from the browser."""
        if not user or not token:
            return PlainTextResponse(
                "missing user or token", status_code=400, headers=CORS_HEADERS
            )
        self._credentials = (user, token)
        self._stop()
        return PlainTextResponse(self.response_body, headers=CORS_HEADERS)

    async def button(self, name: str) -> PlainTextResponse:
        """Handle /<name> for the button being waited on."""
        if self._button is None or name != self._button:
            return PlainTextResponse("not found", status_code=404, headers=CORS_HEADERS)
        self._button_pressed = True
        self._stop()
        return PlainTextResponse(self.response_body, headers=CORS_HEADERS)

    def receive(self) -> tuple[str, str]:
        """Block until the browser hands over a username and token."""
        self._credentials = None
        self._serve()
        if self._credentials is None:
            msg = "no login handshake received"
            raise WebLoginError(msg)
        logger.info("Browser handshake received for %s", self._credentials[0])
        return self._credentials

    def wait_for_button(self, name: str) -> None:
        """Block until the page requests /<name>."""
        self._button = name
        self._button_pressed = False
        try:
            self._serve()
        finally:
            self._button = None
        if not self._button_pressed:
            msg = f"button '{name}' was not pressed"
            raise WebLoginError(msg)

    def _serve(self) -> None:
        config = uvicorn.Config(
            self.app, host=self.host, port=self.port, log_level="warning"
        )
        self._server = uvicorn.Server(config)
        timer = None
        if self.timeout:
            timer = threading.Timer(self.timeout, self._stop)
            timer.daemon = True
            timer.start()
        logger.info("Waiting for browser on http://%s:%s", self.host, self.port)
        try:
            self._server.run()
        except SystemExit as e:
            # uvicorn exits when it cannot bind
            msg = f"couldn't bind to {self.host}:{self.port}"
            raise WebLoginError(msg) from e
        finally:
            if timer is not None:
                timer.cancel()
            self._server = None

    def _stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
