"""
Session handling for the KeyAuth client.

The handler owns the session state machine and the signed exchange: it
builds the wire fields, performs the exchange and refuses to look at any
response whose signature does not verify. Init is verified with the
application secret, every later call with ``enckey + "-" + secret``.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import threading
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from keylic.client.domain import operations
from keylic.client.domain.entities import EngineState, SessionState
from keylic.client.domain.operations import SigningKey
from keylic.common.config import Config
from keylic.common.crypto import CryptoUtils
from keylic.common.exceptions import (
    ApplicationError,
    IntegrityError,
    MalformedPayloadError,
    SessionStateError,
    SessionTerminatedError,
    VersionMismatchError,
)
from keylic.common.models import InitPayload, ResponseEnvelope, VersionMismatchPayload

if TYPE_CHECKING:
    from collections.abc import Mapping

    from keylic.client.domain.entities import AppIdentity
    from keylic.client.domain.operations import ApiRequest
    from keylic.common.interfaces import ITransport, ITransportResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def extract(model: type[ModelT], payload: dict[str, Any]) -> ModelT:
    """Typed view of a verified payload; MalformedPayloadError if it does not fit."""
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        msg = f"unexpected {model.__name__} payload: {e}"
        raise MalformedPayloadError(msg) from e


def _header(headers: Mapping[str, str], name: str) -> str | None:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


class SessionHandler:
    """Handles session init, signed calls, and the session state machine."""

    def __init__(
        self,
        api_url: str,
        identity: AppIdentity,
        secret: str,
        transport: ITransport,
        config: Config | None = None,
    ):
        self.api_url = api_url
        self.identity = identity
        self._secret = secret
        self.transport = transport
        self.config = config or Config()

        self.state = EngineState.UNINITIALIZED
        self.session = SessionState()
        # Serializes exchanges and state updates per session
        self.lock = threading.RLock()

    def start_session(self, app_hash: str | None = None) -> InitPayload:
        """Run the init exchange and move to ACTIVE."""
        with self.lock:
            if self.state is EngineState.TERMINATED:
                raise SessionTerminatedError("session was terminated")
            if self.state is EngineState.ACTIVE:
                raise SessionStateError("session already initialized")

            logger.info("Initializing session for %s", self.identity.name)
            ephemeral_key = CryptoUtils.generate_ephemeral_key()
            derived_key = CryptoUtils.derive_session_key(
                ephemeral_key, self._secret, self.config.KEY_SEPARATOR
            )
            request = operations.init(self.identity.version, ephemeral_key, app_hash)

            self.state = EngineState.INITIALIZING
            try:
                response = self._exchange(request, session_id=None)
                if response.body == self.config.INVALID_APPLICATION_BODY.encode():
                    raise ApplicationError("The application doesn't exist")
                self._verify(request, response, self._secret)
                payload = self._decode(response)
                envelope = self._record_status(payload)
                if not envelope.success:
                    if envelope.message == self.config.VERSION_MISMATCH_MESSAGE:
                        download = extract(VersionMismatchPayload, payload).download
                        raise VersionMismatchError(envelope.message, download or None)
                    raise ApplicationError(envelope.message)
                init_payload = extract(InitPayload, payload)
            finally:
                if self.state is EngineState.INITIALIZING:
                    self.state = EngineState.UNINITIALIZED

            self.update(
                ephemeral_key=ephemeral_key,
                derived_key=derived_key,
                session_id=init_payload.session_id,
                app_info=init_payload.appinfo,
            )
            self.state = EngineState.ACTIVE
            logger.info("Session initialized: %s", init_payload.session_id)
            return init_payload

    def call(
        self, request: ApiRequest, *, require_success: bool = True
    ) -> tuple[ResponseEnvelope, dict[str, Any]]:
        """Perform a verified call; returns the envelope and the raw payload."""
        with self.lock:
            self.ensure_active()
            if request.signing_key is not SigningKey.SESSION_KEY:
                msg = f"'{request.type}' must be verified with the session key"
                raise ValueError(msg)
            session_key = self.session.derived_key
            assert session_key is not None

            response = self._exchange(request, self.session.session_id)
            self._verify(request, response, session_key)
            payload = self._decode(response)
            envelope = self._record_status(payload)
            if require_success and not envelope.success:
                logger.info("%s rejected: %s", request.type, envelope.message)
                raise ApplicationError(envelope.message)
            return envelope, payload

    def send(self, request: ApiRequest) -> None:
        """Fire-and-forget exchange; the response is neither required nor read."""
        with self.lock:
            self.ensure_active()
            self._exchange(request, self.session.session_id)
            logger.debug("%s sent", request.type)

    def update(self, **changes: Any) -> None:
        """Replace session fields in one assignment."""
        with self.lock:
            self.session = dataclasses.replace(self.session, **changes)

    @property
    def is_active(self) -> bool:
        return self.state is EngineState.ACTIVE

    def ensure_active(self) -> None:
        if self.state is EngineState.TERMINATED:
            raise SessionTerminatedError("session was terminated after a tampered response")
        if self.state is not EngineState.ACTIVE:
            raise SessionStateError("session not initialized, call init() first")

    def _exchange(
        self, request: ApiRequest, session_id: str | None
    ) -> ITransportResponse:
        fields = request.to_fields(self.identity, session_id)
        logger.debug("Sending %s request", request.type)
        return self.transport.exchange(self.api_url, fields)

    def _verify(
        self, request: ApiRequest, response: ITransportResponse, key: str
    ) -> None:
        signature = _header(response.headers, self.config.SIGNATURE_HEADER)
        if not signature:
            self._terminate(request, "missing signature header")
        elif not CryptoUtils.verify(response.body, key, signature):
            self._terminate(request, "signature mismatch")

    def _terminate(self, request: ApiRequest, reason: str) -> None:
        self.state = EngineState.TERMINATED
        logger.error(
            "Response to %s was tampered with (%s); session terminated",
            request.type,
            reason,
        )
        raise IntegrityError

    @staticmethod
    def _decode(response: ITransportResponse) -> dict[str, Any]:
        try:
            payload = json.loads(response.body)
        except ValueError as e:
            msg = f"response body is not valid JSON: {e}"
            raise MalformedPayloadError(msg) from e
        if not isinstance(payload, dict):
            msg = "response body is not a JSON object"
            raise MalformedPayloadError(msg)
        return payload

    def _record_status(self, payload: dict[str, Any]) -> ResponseEnvelope:
        envelope = extract(ResponseEnvelope, payload)
        self.update(last_message=envelope.message, last_success=envelope.success)
        return envelope
