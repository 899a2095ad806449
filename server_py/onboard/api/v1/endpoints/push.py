from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from onboard.core.config import settings
from onboard.core.database import get_db
from onboard.core.dependencies import get_dispatcher, get_identity, require_admin
from onboard.core.errors import NotFoundError
from onboard.core.security import Identity
from onboard.schemas.auth import MessageResponse
from onboard.schemas.push import (
    CleanupRequest,
    CleanupResponse,
    DispatchResponse,
    NotificationPayload,
    SubscribeRequest,
    UnsubscribeRequest,
    VapidKeyResponse,
)
from onboard.services.notifications import NotificationDispatcher
from onboard.services.push_subscriptions import SubscriptionRegistry

router = APIRouter()


@router.get("/vapid-public-key", response_model=VapidKeyResponse)
async def vapid_public_key():
    if not settings.VAPID_PUBLIC_KEY:
        raise NotFoundError("Push notifications are not configured")
    return VapidKeyResponse(public_key=settings.VAPID_PUBLIC_KEY)


@router.post("/subscribe", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def subscribe(
    payload: SubscribeRequest,
    request: Request,
    response: Response,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Регистрирует (или обновляет) push-подписку текущего браузера."""
    keys = payload.keys
    _, created = await SubscriptionRegistry(db).subscribe(
        user_id=identity.user_id,
        endpoint=payload.endpoint,
        p256dh=keys.p256dh if keys else None,
        auth=keys.auth if keys else None,
        user_agent=request.headers.get("user-agent") or "Unknown",
        expiration_time=payload.expiration_time,
    )
    if created:
        return MessageResponse(message="Subscribed successfully")
    response.status_code = status.HTTP_200_OK
    return MessageResponse(message="Subscription updated successfully")


@router.delete("/subscribe", response_model=MessageResponse)
async def unsubscribe(
    payload: UnsubscribeRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    await SubscriptionRegistry(db).unsubscribe(user_id=identity.user_id, endpoint=payload.endpoint)
    return MessageResponse(message="Unsubscribed successfully")


@router.post("/test", response_model=DispatchResponse)
async def send_test_notification(
    identity: Identity = Depends(get_identity),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Отправляет тестовое уведомление на все устройства текущего пользователя."""
    result = await dispatcher.send_push_to_users(
        [identity.user_id],
        NotificationPayload(
            title="Test notification",
            body="Push notifications are working on this device.",
            tag="push-test",
        ),
    )
    return DispatchResponse(sent=result.sent, failed=result.failed)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup(
    payload: Optional[CleanupRequest] = Body(default=None),
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    days_old = settings.PUSH_CLEANUP_DEFAULT_DAYS
    if payload is not None and payload.days_old is not None:
        days_old = payload.days_old
    deleted = await SubscriptionRegistry(db).purge_inactive_older_than(days_old)
    return CleanupResponse(
        message=f"Cleaned up {deleted} inactive subscriptions",
        deleted_count=deleted,
    )
