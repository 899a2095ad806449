"""Транспорт Web Push через pywebpush."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict

from pywebpush import WebPushException, webpush

from onboard.core.config import Settings, settings as default_settings
from onboard.core.errors import DeliveryError


class WebPushSender:
    """Отправляет одно зашифрованное сообщение на один endpoint браузера.

    pywebpush блокирующий, поэтому каждый вызов выполняется в отдельном потоке,
    и несколько отправок можно ждать одновременно.
    """

    def __init__(self, config: Settings = default_settings) -> None:
        self.config = config

    @property
    def enabled(self) -> bool:
        return self.config.push_enabled

    def _send_sync(self, subscription_info: Dict[str, Any], data: str) -> None:
        try:
            webpush(
                subscription_info=subscription_info,
                data=data,
                vapid_private_key=self.config.VAPID_PRIVATE_KEY,
                vapid_claims={"sub": f"mailto:{self.config.VAPID_CONTACT_EMAIL}"},
                ttl=self.config.PUSH_TTL_SECONDS,
            )
        except WebPushException as exc:
            response = getattr(exc, "response", None)
            status_code = getattr(response, "status_code", None)
            raise DeliveryError(str(exc), status_code=status_code) from exc

    async def send(self, subscription_info: Dict[str, Any], payload: Dict[str, Any]) -> None:
        """При отказе бросает DeliveryError с кодом ответа push-сервиса."""
        if not self.enabled:
            raise DeliveryError("VAPID keys not configured")
        await asyncio.to_thread(self._send_sync, subscription_info, json.dumps(payload))
