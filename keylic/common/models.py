"""
Pydantic models for configuration and response payload validation.
"""

from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field


class ResponseEnvelope(BaseModel):
    success: bool
    message: str


class AppInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    num_users: str = Field(alias="numUsers")
    num_online_users: str = Field(alias="numOnlineUsers")
    num_keys: str = Field(alias="numKeys")
    version: str | None = None
    customer_panel_link: str | None = Field(default=None, alias="customerPanelLink")


class InitPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionid", min_length=1)
    appinfo: AppInfo


class VersionMismatchPayload(BaseModel):
    download: str | None = None


class Subscription(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    subscription: str
    timeleft: int
    expiry: str


class UserInfo(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    username: str | None = None
    ip: str
    hwid: str | None = None
    createdate: str
    lastlogin: str
    subscriptions: list[Subscription] = Field(min_length=1)


class UserPayload(BaseModel):
    info: UserInfo


class VariablePayload(BaseModel):
    response: str


class FilePayload(BaseModel):
    contents: str


class OnlineUser(BaseModel):
    model_config = ConfigDict(extra="allow")

    credential: str


class OnlineUsersPayload(BaseModel):
    users: list[OnlineUser]


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    author: str
    message: str
    timestamp: int


class ChatPayload(BaseModel):
    messages: list[ChatMessage]


class ClientConfig(BaseModel):
    name: str | None = None
    owner_id: str | None = None
    secret: str | None = None
    version: str | None = None
    api_url: str | None = None
    timeout: float | None = None
    user_agent: str | None = None
    log_level: int | None = None
    on_error_callback: Callable[[Exception], None] | None = None

    def overrides(self) -> dict[str, Any]:
        """Explicitly set values, keyed by attribute name."""
        return self.model_dump(exclude_none=True, exclude={"on_error_callback"})
