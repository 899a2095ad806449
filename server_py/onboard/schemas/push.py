from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionKeys(BaseModel):
    p256dh: Optional[str] = None
    auth: Optional[str] = None


class SubscribeRequest(BaseModel):
    endpoint: Optional[str] = None
    keys: Optional[SubscriptionKeys] = None
    expiration_time: Optional[int] = Field(default=None, alias="expirationTime")

    model_config = ConfigDict(populate_by_name=True)


class UnsubscribeRequest(BaseModel):
    endpoint: Optional[str] = None


class CleanupRequest(BaseModel):
    days_old: Optional[int] = Field(default=None, alias="daysOld", ge=0)

    model_config = ConfigDict(populate_by_name=True)


class CleanupResponse(BaseModel):
    success: bool = True
    message: str
    deleted_count: int = Field(alias="deletedCount")

    model_config = ConfigDict(populate_by_name=True)


class DispatchResponse(BaseModel):
    success: bool = True
    sent: int
    failed: int


class VapidKeyResponse(BaseModel):
    public_key: str = Field(alias="publicKey")

    model_config = ConfigDict(populate_by_name=True)


class NotificationAction(BaseModel):
    action: str
    title: str
    icon: Optional[str] = None


class NotificationPayload(BaseModel):
    """Уведомление в виде, собранном вызывающим; пустые поля заполняются при отправке."""

    title: str
    body: str
    icon: Optional[str] = None
    badge: Optional[str] = None
    tag: Optional[str] = None
    require_interaction: bool = False
    url: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    actions: List[NotificationAction] = Field(default_factory=list)
