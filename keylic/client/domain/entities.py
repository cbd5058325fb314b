"""Domain layer: Core session entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from keylic.common.models import AppInfo, UserInfo


class EngineState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    ACTIVE = "active"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class AppIdentity:
    """Domain entity identifying the application to the service."""

    name: str
    owner_id: str
    version: str


@dataclass(frozen=True)
class AccountFacts:
    """Domain entity with the facts of the last verified account response."""

    username: str
    ip: str
    hwid: str | None
    create_date: str
    last_login: str
    subscription: str
    sub_time_left: int
    expiry: str
    subscriptions: tuple[str, ...] = ()

    @classmethod
    def from_user_info(
        cls, info: UserInfo, username: str, hwid: str | None
    ) -> AccountFacts:
        # The first subscription is the primary one
        primary = info.subscriptions[0]
        return cls(
            username=username,
            ip=info.ip,
            hwid=hwid,
            create_date=info.createdate,
            last_login=info.lastlogin,
            subscription=primary.subscription,
            sub_time_left=primary.timeleft,
            expiry=primary.expiry,
            subscriptions=tuple(sub.subscription for sub in info.subscriptions),
        )


@dataclass
class SessionState:
    """Domain entity representing session state."""

    ephemeral_key: str | None = None
    derived_key: str | None = None
    session_id: str | None = None
    app_info: AppInfo | None = None
    account: AccountFacts | None = None
    blacklisted: bool = False
    last_message: str = ""
    last_success: bool = False
