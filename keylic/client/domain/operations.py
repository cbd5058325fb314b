"""Domain layer: Tagged request builders, one per API operation.

Each builder returns an ApiRequest carrying the operation's own fields in
order and the key that must authenticate the response. The session fields
(``sessionid``, ``name``, ``ownerid``) are appended by the session handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from keylic.client.domain.entities import AppIdentity

INIT = "init"


class SigningKey(Enum):
    APP_SECRET = "app_secret"  # init only
    SESSION_KEY = "session_key"


@dataclass(frozen=True)
class ApiRequest:
    """One request, tagged with its type and response signing key."""

    type: str
    fields: tuple[tuple[str, str], ...] = ()
    signing_key: SigningKey = SigningKey.SESSION_KEY
    expects_response: bool = True

    def to_fields(
        self, identity: AppIdentity, session_id: str | None
    ) -> list[tuple[str, str]]:
        """Full ordered field list as sent on the wire."""
        fields = [("type", self.type), *self.fields]
        if self.type == INIT:
            return [*fields, ("name", identity.name), ("ownerid", identity.owner_id)]
        if not session_id:
            msg = f"'{self.type}' requires an initialized session"
            raise ValueError(msg)
        return [
            *fields,
            ("sessionid", session_id),
            ("name", identity.name),
            ("ownerid", identity.owner_id),
        ]


def init(version: str, enckey: str, app_hash: str | None = None) -> ApiRequest:
    fields = [("ver", version)]
    if app_hash is not None:
        fields.append(("hash", app_hash))
    fields.append(("enckey", enckey))
    return ApiRequest(INIT, tuple(fields), signing_key=SigningKey.APP_SECRET)


def register(username: str, password: str, license_key: str, hwid: str) -> ApiRequest:
    return ApiRequest(
        "register",
        (("username", username), ("pass", password), ("key", license_key), ("hwid", hwid)),
    )


def upgrade(username: str, license_key: str) -> ApiRequest:
    return ApiRequest("upgrade", (("username", username), ("key", license_key)))


def login(username: str, password: str, hwid: str) -> ApiRequest:
    return ApiRequest(
        "login", (("username", username), ("pass", password), ("hwid", hwid))
    )


def token_login(username: str, token: str, hwid: str) -> ApiRequest:
    """Login with the token handed over by the browser flow."""
    return ApiRequest(
        "login", (("username", username), ("token", token), ("hwid", hwid))
    )


def license(license_key: str, hwid: str) -> ApiRequest:  # noqa: A001
    return ApiRequest("license", (("key", license_key), ("hwid", hwid)))


def var(var_id: str) -> ApiRequest:
    return ApiRequest("var", (("varid", var_id),))


def get_var(name: str) -> ApiRequest:
    return ApiRequest("getvar", (("var", name),))


def set_var(name: str, value: str) -> ApiRequest:
    return ApiRequest("setvar", (("var", name), ("data", value)))


def file(file_id: str) -> ApiRequest:
    return ApiRequest("file", (("fileid", file_id),))


def webhook(web_id: str, params: str) -> ApiRequest:
    return ApiRequest("webhook", (("webid", web_id), ("params", params)))


def check_blacklist() -> ApiRequest:
    return ApiRequest("checkblacklist")


def check() -> ApiRequest:
    return ApiRequest("check")


def fetch_online() -> ApiRequest:
    return ApiRequest("fetchOnline")


def chat_get(channel: str) -> ApiRequest:
    return ApiRequest("chatget", (("channel", channel),))


def chat_send(channel: str, message: str) -> ApiRequest:
    return ApiRequest("chatsend", (("channel", channel), ("message", message)))


def change_username(new_username: str) -> ApiRequest:
    return ApiRequest("changeUsername", (("newUsername", new_username),))


def ban() -> ApiRequest:
    return ApiRequest("ban", expects_response=False)


def log(message: str, pc_user: str) -> ApiRequest:
    return ApiRequest(
        "log", (("message", message), ("pcuser", pc_user)), expects_response=False
    )
