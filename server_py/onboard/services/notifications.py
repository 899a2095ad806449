"""Рассылка push: одно уведомление на все активные подписки набора пользователей."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from onboard.core.config import Settings, settings as default_settings
from onboard.core.errors import DeliveryError
from onboard.core.security import ROLE_ADMIN
from onboard.models.user import User
from onboard.schemas.push import NotificationPayload
from onboard.services.push_subscriptions import SubscriptionRegistry, SubscriptionTarget, short_endpoint

logger = logging.getLogger(__name__)


class PushSender(Protocol):
    enabled: bool

    async def send(self, subscription_info: Dict[str, Any], payload: Dict[str, Any]) -> None: ...


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0


def build_message(payload: NotificationPayload, config: Settings = default_settings) -> Dict[str, Any]:
    """Заполняет значения по умолчанию и собирает формат, который читает service worker.

    ``data.url`` берется из ``payload.url``, иначе ``/``; ключи, переданные в
    ``data``, перекрывают сгенерированные.
    """
    data: Dict[str, Any] = {
        "url": payload.url or "/",
        "timestamp": int(time.time() * 1000),
    }
    data.update(payload.data)
    if not data.get("url"):
        data["url"] = "/"

    return {
        "title": payload.title,
        "body": payload.body,
        "icon": payload.icon or config.PUSH_DEFAULT_ICON,
        "badge": payload.badge or config.PUSH_DEFAULT_BADGE,
        "tag": payload.tag or config.PUSH_DEFAULT_TAG,
        "requireInteraction": payload.require_interaction,
        "data": data,
        "actions": [action.model_dump(exclude_none=True) for action in payload.actions],
    }


class NotificationDispatcher:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        sender: PushSender,
        config: Settings = default_settings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.session_factory = session_factory
        self.sender = sender
        self.config = config
        self.sleep = sleep

    async def _deactivate(self, endpoint: str) -> None:
        async with self.session_factory() as session:
            await SubscriptionRegistry(session).deactivate(endpoint)

    async def send_to_subscription(self, target: SubscriptionTarget, payload: NotificationPayload) -> bool:
        message = build_message(payload, self.config)
        retries = self.config.PUSH_MAX_RETRIES
        endpoint = short_endpoint(target.endpoint)

        for attempt in range(retries + 1):
            try:
                await self.sender.send(target.subscription_info(), message)
                logger.info("[Push] Notification sent to %s", endpoint)
                return True
            except DeliveryError as exc:
                status_code = exc.status_code
                if exc.endpoint_gone:
                    logger.info(
                        "[Push] Subscription expired/not found (%s), marking as inactive: %s",
                        status_code,
                        endpoint,
                    )
                    await self._deactivate(target.endpoint)
                    return False
                if exc.rate_limited and attempt < retries:
                    logger.warning("[Push] Rate limited, attempt %s/%s", attempt + 1, retries + 1)
                    await self.sleep(self.config.PUSH_RATE_LIMIT_BACKOFF * (attempt + 1))
                    continue
                if exc.server_error and attempt < retries:
                    logger.warning("[Push] Server error (%s), attempt %s/%s", status_code, attempt + 1, retries + 1)
                    await self.sleep(self.config.PUSH_SERVER_ERROR_BACKOFF * (attempt + 1))
                    continue
                logger.error(
                    "[Push] Failed to send notification (attempt %s/%s) status=%s endpoint=%s: %s",
                    attempt + 1,
                    retries + 1,
                    status_code,
                    endpoint,
                    exc,
                )
            except Exception:
                logger.exception(
                    "[Push] Unexpected error sending notification (attempt %s/%s) to %s",
                    attempt + 1,
                    retries + 1,
                    endpoint,
                )
        return False

    async def send_push_to_users(self, user_ids: Iterable[int], payload: NotificationPayload) -> DispatchResult:
        ids = list(user_ids)
        if not self.sender.enabled:
            logger.debug("[Push] VAPID keys not configured, skipping push to %s user(s)", len(ids))
            return DispatchResult()

        async with self.session_factory() as session:
            targets = await SubscriptionRegistry(session).find_active_by_user_ids(ids)

        if not targets:
            logger.info("[Push] No active subscriptions found for %s user(s)", len(ids))
            return DispatchResult()

        logger.info("[Push] Sending notifications to %s subscription(s) for %s user(s)", len(targets), len(ids))
        outcomes = await asyncio.gather(
            *(self.send_to_subscription(target, payload) for target in targets),
            return_exceptions=True,
        )
        sent = sum(1 for outcome in outcomes if outcome is True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                logger.error("[Push] Delivery task crashed: %r", outcome)
        result = DispatchResult(sent=sent, failed=len(outcomes) - sent)
        logger.info("[Push] Results: %s sent, %s failed", result.sent, result.failed)
        return result

    async def admin_ids(self) -> List[int]:
        async with self.session_factory() as session:
            result = await session.execute(select(User.id).where(User.role == ROLE_ADMIN))
            return list(result.scalars())

    async def send_push_to_admins(self, payload: NotificationPayload) -> DispatchResult:
        ids = await self.admin_ids()
        if not ids:
            logger.info("[Push] No admin users found")
            return DispatchResult()
        logger.info("[Push] Sending notification to %s admin(s)", len(ids))
        return await self.send_push_to_users(ids, payload)

    async def dispatch_in_background(
        self,
        payload: NotificationPayload,
        user_ids: Optional[List[int]] = None,
    ) -> None:
        """Фоновая отправка из обработчиков запросов; ошибки только логируются."""
        try:
            if user_ids is None:
                await self.send_push_to_admins(payload)
            else:
                await self.send_push_to_users(user_ids, payload)
        except Exception:
            logger.exception("[Push] Notification dispatch failed")


def _preview(text: str, limit: int = 100) -> str:
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


def user_message_notification(conversation_id: str, sender_name: str, text: str) -> NotificationPayload:
    """Уведомление администраторам о новом сообщении пользователя."""
    return NotificationPayload(
        title=f"New message from {sender_name}",
        body=_preview(text),
        tag=f"chat-{conversation_id}",
        url=f"/admin/chat/{conversation_id}",
        data={"conversationId": conversation_id, "type": "chat_message"},
    )


def admin_reply_notification(conversation_id: str, text: str) -> NotificationPayload:
    return NotificationPayload(
        title="New reply from support",
        body=_preview(text),
        tag=f"chat-{conversation_id}",
        url="/dashboard?chat=open",
        data={"conversationId": conversation_id, "type": "chat_message"},
    )
