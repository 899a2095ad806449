from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from onboard.core.config import settings
from onboard.core.dependencies import extract_access_token
from onboard.core.errors import AuthError
from onboard.core.security import Identity, decode_access_token

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatConnectionManager:
    """Активные сокеты владельцев диалогов и общий пул администраторов."""

    def __init__(self, send_timeout: Optional[float] = None) -> None:
        self.send_timeout = send_timeout if send_timeout is not None else settings.WS_SEND_TIMEOUT_SECONDS
        self._user_connections: Dict[int, Set[WebSocket]] = {}
        self._user_lookup: Dict[WebSocket, int] = {}
        self._admin_connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def register(self, identity: Identity, websocket: WebSocket) -> None:
        async with self._lock:
            if identity.is_admin:
                self._admin_connections.add(websocket)
                return
            self._user_connections.setdefault(identity.user_id, set()).add(websocket)
            self._user_lookup[websocket] = identity.user_id

    async def unregister(self, websocket: WebSocket) -> None:
        async with self._lock:
            if websocket in self._admin_connections:
                self._admin_connections.discard(websocket)
                return
            user_id = self._user_lookup.pop(websocket, None)
            if user_id is None:
                return
            conns = self._user_connections.get(user_id)
            if not conns:
                return
            conns.discard(websocket)
            if not conns:
                self._user_connections.pop(user_id, None)

    async def _snapshot(self, user_id: int) -> List[WebSocket]:
        async with self._lock:
            return list(self._user_connections.get(user_id, ())) + list(self._admin_connections)

    async def push_message(self, user_id: int, message: dict) -> None:
        """Рассылает сообщение владельцу диалога и всем подключенным администраторам."""
        sockets = await self._snapshot(user_id)
        await asyncio.gather(*(self._safe_send(ws, message) for ws in sockets))

    async def _safe_send(self, websocket: WebSocket, message: dict) -> None:
        try:
            await asyncio.wait_for(websocket.send_json(message), timeout=self.send_timeout)
        except Exception:  # noqa: BLE001
            logger.debug("Dropping dead chat socket")
            await self.unregister(websocket)


chat_manager = ChatConnectionManager()


@router.websocket("/ws/chat")
async def chat_websocket(websocket: WebSocket) -> None:
    token = extract_access_token(websocket.cookies) or websocket.query_params.get("token")
    try:
        identity = decode_access_token(token or "")
    except AuthError:
        await websocket.close(code=4401)
        return

    await websocket.accept()
    await chat_manager.register(identity, websocket)
    try:
        # Клиент ничего не отправляет; входящие кадры только поддерживают соединение
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    except Exception:  # noqa: BLE001
        logger.exception("Chat websocket error")
    finally:
        await chat_manager.unregister(websocket)
