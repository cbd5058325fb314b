"""Business logic of the mock API server.

Every handler receives the caller's session and the request fields and
returns the payload of a successful response. Rejections are raised as
ApplicationError and turned into ``success: false`` envelopes by the core.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable

from keylic.common.exceptions import ApplicationError, VersionMismatchError

DAY = 86400


@dataclass
class MockUser:
    username: str
    password: str
    subscription: str
    expires_at: int
    created_at: int = field(default_factory=lambda: int(time.time()))
    last_login: int = field(default_factory=lambda: int(time.time()))
    hwid: str | None = None
    banned: bool = False
    variables: dict[str, str] = field(default_factory=dict)


@dataclass
class MockLicense:
    key: str
    subscription: str
    days: int
    used_by: str | None = None


@dataclass
class MockSession:
    session_id: str
    enckey: str
    username: str | None = None

    @property
    def validated(self) -> bool:
        return self.username is not None


class MockAuthService:
    """In-memory application, users, licenses, variables, files and chat."""

    def __init__(
        self,
        version: str,
        download_url: str = "",
        logger: logging.Logger | None = None,
    ):
        self.version = version
        self.download_url = download_url
        self.logger = logger or logging.getLogger(__name__)

        self.sessions: dict[str, MockSession] = {}
        self.users: dict[str, MockUser] = {}
        self.licenses: dict[str, MockLicense] = {}
        self.variables: dict[str, str] = {}
        self.files: dict[str, bytes] = {}
        self.webhooks: dict[str, str] = {}
        self.web_tokens: dict[str, str] = {}
        self.channels: dict[str, list[dict[str, Any]]] = {}
        self.blacklisted_hwids: set[str] = set()
        self.logs: list[tuple[str, str]] = []

        self.handlers: dict[str, Callable[[MockSession, dict[str, str]], dict[str, Any]]] = {
            "register": self.register,
            "upgrade": self.upgrade,
            "login": self.login,
            "license": self.license,
            "var": self.var,
            "getvar": self.getvar,
            "setvar": self.setvar,
            "file": self.file,
            "webhook": self.webhook,
            "checkblacklist": self.checkblacklist,
            "check": self.check,
            "fetchOnline": self.fetch_online,
            "chatget": self.chatget,
            "chatsend": self.chatsend,
            "ban": self.ban,
            "log": self.log,
            "changeUsername": self.change_username,
        }

    # Seed data

    def add_user(
        self, username: str, password: str, subscription: str = "default", days: int = 30
    ) -> MockUser:
        user = MockUser(
            username, password, subscription, int(time.time()) + days * DAY
        )
        self.users[username] = user
        return user

    def add_license(self, key: str, subscription: str = "default", days: int = 30) -> None:
        self.licenses[key] = MockLicense(key, subscription, days)

    # Session establishment

    def init(self, fields: dict[str, str]) -> dict[str, Any]:
        if fields.get("ver") != self.version:
            raise VersionMismatchError("invalidver", self.download_url)
        enckey = fields.get("enckey", "")
        if not enckey:
            raise ApplicationError("No encryption key supplied")
        session_id = uuid.uuid4().hex[:8]
        self.sessions[session_id] = MockSession(session_id, enckey)
        return {
            "message": "Initialized",
            "sessionid": session_id,
            "appinfo": {
                "numUsers": str(len(self.users)),
                "numOnlineUsers": str(self._online_count()),
                "numKeys": str(len(self.licenses)),
                "version": self.version,
                "customerPanelLink": "",
            },
        }

    # Account handlers

    def register(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        username = fields.get("username", "")
        if not username or username in self.users:
            raise ApplicationError("Username already taken, choose a different one")
        lic = self._unused_license(fields.get("key", ""))
        user = self.add_user(username, fields.get("pass", ""), lic.subscription, lic.days)
        user.hwid = fields.get("hwid") or None
        lic.used_by = username
        return self._logged_in(session, user, "Logged in!")

    def upgrade(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        user = self.users.get(fields.get("username", ""))
        if user is None:
            raise ApplicationError("Invalid username")
        lic = self._unused_license(fields.get("key", ""))
        lic.used_by = user.username
        user.subscription = lic.subscription
        user.expires_at = max(user.expires_at, int(time.time())) + lic.days * DAY
        return {"message": "Upgraded successfully"}

    def login(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        username = fields.get("username", "")
        user = self.users.get(username)
        if user is None:
            raise ApplicationError("User does not exist")
        if "token" in fields:
            if self.web_tokens.get(username) != fields["token"]:
                raise ApplicationError("Invalid token")
        elif user.password != fields.get("pass"):
            raise ApplicationError("Password does not match.")
        self._check_device(user, fields.get("hwid", ""))
        return self._logged_in(session, user, "Logged in!")

    def license(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:  # noqa: A003
        key = fields.get("key", "")
        user = self.users.get(key)
        if user is None:
            lic = self._unused_license(key)
            user = self.add_user(key, key, lic.subscription, lic.days)
            lic.used_by = key
        self._check_device(user, fields.get("hwid", ""))
        return self._logged_in(session, user, "Logged in!")

    def change_username(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        user = self._require_user(session)
        new_username = fields.get("newUsername", "")
        if not new_username or new_username in self.users:
            raise ApplicationError("Username already used")
        del self.users[user.username]
        user.username = new_username
        self.users[new_username] = user
        session.username = new_username
        return {"message": "Successfully changed username"}

    # Data handlers

    def var(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        value = self.variables.get(fields.get("varid", ""))
        if value is None:
            raise ApplicationError("Variable not found.")
        return {"message": value}

    def getvar(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        user = self._require_user(session)
        value = user.variables.get(fields.get("var", ""))
        if value is None:
            raise ApplicationError("Variable not found for user")
        return {"message": "Successfully retrieved variable", "response": value}

    def setvar(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        user = self._require_user(session)
        user.variables[fields.get("var", "")] = fields.get("data", "")
        return {"message": "Successfully set variable"}

    def file(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        data = self.files.get(fields.get("fileid", ""))
        if data is None:
            raise ApplicationError("File not Found")
        return {"message": "File download successful", "contents": data.hex()}

    def webhook(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        reply = self.webhooks.get(fields.get("webid", ""))
        if reply is None:
            raise ApplicationError("Webhook Not Found.")
        return {"message": reply}

    # Status handlers

    def checkblacklist(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        user = self.users.get(session.username or "")
        if user is not None and user.hwid in self.blacklisted_hwids:
            return {"message": "Client is blacklisted"}
        raise ApplicationError("Client is not blacklisted")

    def check(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        self._require_user(session)
        return {"message": "Session is validated."}

    def fetch_online(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        online = sorted({s.username for s in self.sessions.values() if s.username})
        return {
            "message": "Successfully fetched online users.",
            "users": [{"credential": name} for name in online],
        }

    # Chat handlers

    def chatget(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        self._require_user(session)
        channel = fields.get("channel", "")
        if channel not in self.channels:
            raise ApplicationError("Chat channel not found")
        return {"message": "Successfully retrieved chats", "messages": self.channels[channel]}

    def chatsend(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        user = self._require_user(session)
        channel = fields.get("channel", "")
        if channel not in self.channels:
            raise ApplicationError("Chat channel not found")
        self.channels[channel].append(
            {
                "author": user.username,
                "message": fields.get("message", ""),
                "timestamp": int(time.time()),
            }
        )
        return {"message": "Successfully sent chat message"}

    # Fire-and-forget handlers

    def ban(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        user = self._require_user(session)
        user.banned = True
        if user.hwid:
            self.blacklisted_hwids.add(user.hwid)
        self.logger.info("Banned %s", user.username)
        return {"message": "Successfully Banned User"}

    def log(self, session: MockSession, fields: dict[str, str]) -> dict[str, Any]:
        self.logs.append((fields.get("pcuser", ""), fields.get("message", "")))
        return {"message": "Logged"}

    # Helpers

    def _online_count(self) -> int:
        return sum(1 for s in self.sessions.values() if s.validated)

    def _unused_license(self, key: str) -> MockLicense:
        lic = self.licenses.get(key)
        if lic is None:
            raise ApplicationError("Key not found.")
        if lic.used_by is not None:
            raise ApplicationError("Key already used.")
        return lic

    def _require_user(self, session: MockSession) -> MockUser:
        user = self.users.get(session.username or "")
        if user is None:
            raise ApplicationError("Session is not validated.")
        return user

    def _check_device(self, user: MockUser, hwid: str) -> None:
        if user.banned or (hwid and hwid in self.blacklisted_hwids):
            raise ApplicationError("User is banned")
        if user.hwid and hwid != user.hwid:
            raise ApplicationError("HWID doesn't match")
        if not user.hwid and hwid:
            user.hwid = hwid

    def _logged_in(self, session: MockSession, user: MockUser, message: str) -> dict[str, Any]:
        now = int(time.time())
        user.last_login = now
        session.username = user.username
        return {
            "message": message,
            "info": {
                "username": user.username,
                "ip": "127.0.0.1",
                "hwid": user.hwid,
                "createdate": str(user.created_at),
                "lastlogin": str(user.last_login),
                "subscriptions": [
                    {
                        "subscription": user.subscription,
                        "timeleft": max(user.expires_at - now, 0),
                        "expiry": str(user.expires_at),
                    }
                ],
            },
        }
