"""
Entry point for the mock API server.
"""

import logging

import uvicorn

from keylic.common.config import Config

from .core import MockAuthServer


def start_server(
    server: MockAuthServer, host: str | None = None, port: int | None = None
) -> None:
    """Serve a mock API until interrupted."""
    config = Config()
    host = host or config.MOCK_SERVER_HOST
    port = port or config.MOCK_SERVER_PORT
    logging.basicConfig(level=config.LOG_LEVEL)
    server.logger.info("Mock API listening on http://%s:%s/api/1.2/", host, port)
    uvicorn.run(server.app, host=host, port=port)


__all__ = ["MockAuthServer", "start_server"]
