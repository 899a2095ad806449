from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from onboard.core.database import utcnow
from onboard.core.errors import NotFoundError, ValidationError
from onboard.models.push_subscription import PushSubscription

logger = logging.getLogger(__name__)


def short_endpoint(endpoint: str) -> str:
    return f"{endpoint[:50]}..."


@dataclass(frozen=True)
class SubscriptionTarget:
    """Отвязанный от сессии адрес доставки; можно передавать в параллельные отправки."""

    endpoint: str
    p256dh: str
    auth: str
    user_id: Optional[int] = None

    def subscription_info(self) -> dict:
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}


class SubscriptionRegistry:
    """Push-подписки по URL endpoint. Строки помечаются неактивными и удаляются только очисткой."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_endpoint(self, endpoint: str) -> Optional[PushSubscription]:
        result = await self.db.execute(select(PushSubscription).where(PushSubscription.endpoint == endpoint))
        return result.scalar_one_or_none()

    async def subscribe(
        self,
        *,
        user_id: int,
        endpoint: Optional[str],
        p256dh: Optional[str],
        auth: Optional[str],
        user_agent: Optional[str] = None,
        expiration_time: Optional[int] = None,
    ) -> tuple[PushSubscription, bool]:
        """Создает или обновляет подписку по endpoint. Возвращает строку и признак создания."""
        if not endpoint or not p256dh or not auth:
            raise ValidationError("Invalid subscription object")

        existing = await self.get_by_endpoint(endpoint)
        if existing is not None:
            existing.keys_p256dh = p256dh
            existing.keys_auth = auth
            existing.user_id = user_id
            existing.user_agent = user_agent
            existing.expiration_time = expiration_time
            existing.is_active = True
            existing.updated_at = utcnow()
            await self.db.flush()
            await self.db.commit()
            logger.info("[Push] Updated subscription for user %s, endpoint: %s", user_id, short_endpoint(endpoint))
            return existing, False

        subscription = PushSubscription(
            endpoint=endpoint,
            keys_p256dh=p256dh,
            keys_auth=auth,
            user_id=user_id,
            user_agent=user_agent,
            expiration_time=expiration_time,
            is_active=True,
        )
        self.db.add(subscription)
        await self.db.flush()
        await self.db.refresh(subscription)
        await self.db.commit()
        logger.info("[Push] Created new subscription for user %s, endpoint: %s", user_id, short_endpoint(endpoint))
        return subscription, True

    async def unsubscribe(self, *, user_id: int, endpoint: Optional[str]) -> None:
        if not endpoint:
            raise ValidationError("Endpoint is required")
        stmt = (
            update(PushSubscription)
            .where(PushSubscription.endpoint == endpoint, PushSubscription.user_id == user_id)
            .values(is_active=False, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if not result.rowcount:
            raise NotFoundError("Subscription not found")
        await self.db.commit()
        logger.info("[Push] Unsubscribed user %s from endpoint: %s", user_id, short_endpoint(endpoint))

    async def find_active_by_user_ids(self, user_ids: Iterable[int]) -> List[SubscriptionTarget]:
        ids = list(set(user_ids))
        if not ids:
            return []
        result = await self.db.execute(
            select(PushSubscription).where(
                PushSubscription.user_id.in_(ids),
                PushSubscription.is_active.is_(True),
            )
        )
        return [
            SubscriptionTarget(
                endpoint=row.endpoint,
                p256dh=row.keys_p256dh,
                auth=row.keys_auth,
                user_id=row.user_id,
            )
            for row in result.scalars()
        ]

    async def deactivate(self, endpoint: str) -> bool:
        stmt = (
            update(PushSubscription)
            .where(PushSubscription.endpoint == endpoint)
            .values(is_active=False, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return bool(result.rowcount)

    async def purge_inactive_older_than(self, days: int) -> int:
        cutoff = utcnow() - timedelta(days=days)
        stmt = delete(PushSubscription).where(
            PushSubscription.is_active.is_(False),
            PushSubscription.updated_at < cutoff,
        ).execution_options(synchronize_session=False)
        result = await self.db.execute(stmt)
        await self.db.commit()
        deleted = result.rowcount or 0
        logger.info("[Push] Cleaned up %s inactive subscriptions older than %s days", deleted, days)
        return deleted
