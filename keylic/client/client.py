"""
OOP-based KeyAuth API client.
"""

from __future__ import annotations

import dataclasses
import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from keylic.client.domain import operations
from keylic.client.domain.entities import AccountFacts, EngineState
from keylic.client.infrastructure.config_loader import ConfigLoader
from keylic.client.infrastructure.hwid import HardwareIdentifier
from keylic.client.infrastructure.transport import RequestsTransport
from keylic.client.session_handler import SessionHandler, extract
from keylic.common.exceptions import (
    IntegrityError,
    MalformedPayloadError,
    TransportError,
)
from keylic.common.models import (
    AppInfo,
    ChatMessage,
    ChatPayload,
    ClientConfig,
    FilePayload,
    OnlineUser,
    OnlineUsersPayload,
    UserPayload,
    VariablePayload,
)

if TYPE_CHECKING:
    from keylic.client.domain.entities import SessionState
    from keylic.client.domain.operations import ApiRequest
    from keylic.common.interfaces import (
        ICallbackListener,
        IHardwareIdentifier,
        ITransport,
    )

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _serialized(func: F) -> F:
    """Run one operation at a time and report transport/integrity failures."""

    @wraps(func)
    def wrapper(self: KeyAuthClient, *args: Any, **kwargs: Any) -> Any:
        with self._handler.lock:
            try:
                return func(self, *args, **kwargs)
            except (IntegrityError, TransportError) as e:
                if self.on_error_callback:
                    self.on_error_callback(e)
                raise

    return wrapper  # type: ignore[return-value]


class KeyAuthClient:
    """Client for the KeyAuth 1.2 API with verified responses.

    Call ``init()`` once, then any other operation. Rejections from the
    server raise ApplicationError and leave the session usable; a response
    that fails signature verification raises IntegrityError and terminates
    the session.
    """

    def __init__(
        self,
        name: str | None = None,
        owner_id: str | None = None,
        secret: str | None = None,
        version: str | None = None,
        api_url: str | None = None,
        *,
        timeout: float | None = None,
        log_level: int | None = None,
        on_error_callback: Callable[[Exception], None] | None = None,
        transport: ITransport | None = None,
        hwid_provider: IHardwareIdentifier | None = None,
        client_config: ClientConfig | None = None,
    ):
        if client_config is None:
            client_config = ClientConfig(
                name=name,
                owner_id=owner_id,
                secret=secret,
                version=version,
                api_url=api_url,
                timeout=timeout,
                log_level=log_level,
                on_error_callback=on_error_callback,
            )
        loader = ConfigLoader(client_config)
        assert loader.secret is not None

        self.api_url = loader.api_url
        self.identity = loader.identity
        self.on_error_callback = loader.on_error_callback
        self.transport = transport or RequestsTransport(
            loader.timeout, loader.user_agent
        )
        self.hwid_provider = hwid_provider or HardwareIdentifier()
        self._handler = SessionHandler(
            self.api_url, self.identity, loader.secret, self.transport, loader.config
        )

    # Session state

    @property
    def state(self) -> EngineState:
        return self._handler.state

    @property
    def session(self) -> SessionState:
        """Current session state snapshot."""
        return self._handler.session

    @property
    def session_id(self) -> str | None:
        return self._handler.session.session_id

    @property
    def app_info(self) -> AppInfo | None:
        return self._handler.session.app_info

    @property
    def account(self) -> AccountFacts | None:
        return self._handler.session.account

    @property
    def blacklisted(self) -> bool:
        return self._handler.session.blacklisted

    @property
    def last_message(self) -> str:
        return self._handler.session.last_message

    @property
    def last_success(self) -> bool:
        return self._handler.session.last_success

    def is_license_active(self) -> bool:
        """True once a verified login, license or registration succeeded."""
        return self._handler.is_active and self._handler.session.account is not None

    # Session establishment

    @_serialized
    def init(self, app_hash: str | None = None) -> AppInfo:
        """Initialize the session; required before any other operation."""
        return self._handler.start_session(app_hash).appinfo

    # Account operations

    @_serialized
    def register(
        self, username: str, password: str, license_key: str, hwid: str | None = None
    ) -> AccountFacts:
        """Register a new user with a license key."""
        hwid = self._resolve_hwid(hwid)
        return self._account_call(
            operations.register(username, password, license_key, hwid), username, hwid
        )

    @_serialized
    def upgrade(self, username: str, license_key: str) -> str:
        """Upgrade a user's subscription level or extend it."""
        envelope, _ = self._handler.call(operations.upgrade(username, license_key))
        return envelope.message

    @_serialized
    def login(self, username: str, password: str, hwid: str | None = None) -> AccountFacts:
        hwid = self._resolve_hwid(hwid)
        return self._account_call(operations.login(username, password, hwid), username, hwid)

    @_serialized
    def license(self, license_key: str, hwid: str | None = None) -> AccountFacts:
        """Log in with a license key only."""
        hwid = self._resolve_hwid(hwid)
        return self._account_call(operations.license(license_key, hwid), None, hwid)

    @_serialized
    def web_login(
        self, listener: ICallbackListener, hwid: str | None = None
    ) -> AccountFacts:
        """Log in with the username/token pair delivered by the browser flow."""
        self._handler.ensure_active()
        hwid = self._resolve_hwid(hwid)
        username, token = listener.receive()
        return self._account_call(operations.token_login(username, token, hwid), username, hwid)

    @_serialized
    def change_username(self, new_username: str) -> str:
        envelope, _ = self._handler.call(operations.change_username(new_username))
        account = self._handler.session.account
        if account is not None:
            self._handler.update(
                account=dataclasses.replace(account, username=new_username)
            )
        return envelope.message

    # Variables, files and webhooks

    @_serialized
    def var(self, var_id: str) -> str:
        """Fetch a global application variable."""
        envelope, _ = self._handler.call(operations.var(var_id))
        return envelope.message

    @_serialized
    def get_var(self, name: str) -> str:
        """Fetch a variable of the logged-in user."""
        _, payload = self._handler.call(operations.get_var(name))
        return extract(VariablePayload, payload).response

    @_serialized
    def set_var(self, name: str, value: str) -> str:
        """Set a variable of the logged-in user."""
        envelope, _ = self._handler.call(operations.set_var(name, value))
        return envelope.message

    @_serialized
    def file(self, file_id: str) -> bytes:
        """Download a file; contents arrive base-16 encoded."""
        _, payload = self._handler.call(operations.file(file_id))
        contents = extract(FilePayload, payload).contents
        try:
            return bytes.fromhex(contents)
        except ValueError as e:
            msg = f"file contents are not valid hex: {e}"
            raise MalformedPayloadError(msg) from e

    @_serialized
    def webhook(self, web_id: str, params: str) -> str:
        """Relay a webhook call through the service so its url stays hidden."""
        envelope, _ = self._handler.call(operations.webhook(web_id, params))
        return envelope.message

    # Status checks

    @_serialized
    def check_blacklist(self) -> bool:
        envelope, _ = self._handler.call(
            operations.check_blacklist(), require_success=False
        )
        self._handler.update(blacklisted=envelope.success)
        return envelope.success

    @_serialized
    def check(self) -> bool:
        """Whether the server still considers the session valid."""
        envelope, _ = self._handler.call(operations.check(), require_success=False)
        return envelope.success

    @_serialized
    def fetch_online(self) -> list[OnlineUser]:
        _, payload = self._handler.call(operations.fetch_online())
        return extract(OnlineUsersPayload, payload).users

    # Chat

    @_serialized
    def chat_get(self, channel: str) -> list[ChatMessage]:
        _, payload = self._handler.call(operations.chat_get(channel))
        return extract(ChatPayload, payload).messages

    @_serialized
    def chat_send(self, channel: str, message: str) -> None:
        self._handler.call(operations.chat_send(channel, message))

    # Fire-and-forget

    @_serialized
    def ban(self) -> None:
        self._handler.send(operations.ban())

    @_serialized
    def log(self, message: str, pc_user: str | None = None) -> None:
        if pc_user is None:
            account = self._handler.session.account
            pc_user = account.username if account else ""
        self._handler.send(operations.log(message, pc_user))

    def _resolve_hwid(self, hwid: str | None) -> str:
        return hwid if hwid is not None else self.hwid_provider.generate()

    def _account_call(
        self, request: ApiRequest, username: str | None, hwid: str
    ) -> AccountFacts:
        _, payload = self._handler.call(request)
        info = extract(UserPayload, payload).info
        if username is None:
            if not info.username:
                msg = "response is missing info.username"
                raise MalformedPayloadError(msg)
            username = info.username
        facts = AccountFacts.from_user_info(info, username, hwid)
        self._handler.update(account=facts)
        logger.info("%s succeeded for %s", request.type, username)
        return facts
