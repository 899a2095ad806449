from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import and_, case, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from onboard.core.config import settings
from onboard.core.errors import AuthorizationError, NotFoundError, ValidationError
from onboard.core.security import ROLE_ADMIN, ROLE_USER, Identity
from onboard.models.chat_message import ChatMessage
from onboard.models.user import User

CONVERSATION_PREFIX = "user_"


def conversation_id_for(user_id: int) -> str:
    return f"{CONVERSATION_PREFIX}{user_id}"


def user_id_from_conversation(conversation_id: str) -> int:
    """Обратное к ``conversation_id_for``; NotFoundError для id, которые не принадлежат пользователю."""
    if not conversation_id or not conversation_id.startswith(CONVERSATION_PREFIX):
        raise NotFoundError("Conversation not found")
    raw = conversation_id[len(CONVERSATION_PREFIX):]
    if not raw.isdigit():
        raise NotFoundError("Conversation not found")
    return int(raw)


def counterpart_role(role: str) -> str:
    return ROLE_USER if role == ROLE_ADMIN else ROLE_ADMIN


def ensure_conversation_access(identity: Identity, conversation_id: str) -> None:
    """Администратор видит любой диалог, пользователь только свой."""
    if identity.is_admin:
        return
    if conversation_id != conversation_id_for(identity.user_id):
        raise AuthorizationError("You are not allowed to access this conversation")


def validate_message_text(text: Optional[str]) -> str:
    """Проверяет текст в том виде, в каком он пришел; обрезка пробелов только при сохранении."""
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Message is required")
    if len(text) > settings.MESSAGE_MAX_LENGTH:
        raise ValidationError(f"Message cannot exceed {settings.MESSAGE_MAX_LENGTH} characters")
    return text.strip()


class ChatService:
    """Журнал сообщений по диалогам (только добавление) и отметки о прочтении."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def append_message(
        self,
        identity: Identity,
        conversation_id: str,
        text: str,
        *,
        sender_role: Optional[str] = None,
    ) -> ChatMessage:
        role = sender_role or identity.role
        if role != identity.role:
            raise ValidationError("Sender role does not match the authenticated role")
        ensure_conversation_access(identity, conversation_id)
        body = validate_message_text(text)

        message = ChatMessage(
            sender_id=identity.user_id,
            sender_role=role,
            message=body,
            conversation_id=conversation_id,
            read=False,
        )
        self.db.add(message)
        await self.db.flush()
        await self.db.refresh(message)
        await self.db.commit()
        return message

    async def list_messages(
        self,
        conversation_id: str,
        *,
        limit: int,
        reader_role: str,
    ) -> List[ChatMessage]:
        """
        Последние ``limit`` сообщений по возрастанию времени. После выборки все
        непрочитанные сообщения собеседника помечаются прочитанными, в том числе
        вне страницы. Возвращаемые строки сохраняют статус на момент выборки.
        """
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.conversation_id == conversation_id)
            .order_by(desc(ChatMessage.created_at), desc(ChatMessage.id))
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        messages = list(reversed(result.scalars().all()))
        for message in messages:
            self.db.expunge(message)

        await self.mark_read(conversation_id, counterpart_role(reader_role))
        return messages

    async def mark_read(self, conversation_id: str, sender_role: str) -> int:
        stmt = (
            update(ChatMessage)
            .where(
                ChatMessage.conversation_id == conversation_id,
                ChatMessage.sender_role == sender_role,
                ChatMessage.read.is_(False),
            )
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount or 0

    async def list_conversations(self) -> List[dict]:
        """Сводка по диалогам, сначала самые свежие."""
        ranked = select(
            ChatMessage.conversation_id.label("conversation_id"),
            ChatMessage.message.label("last_message"),
            ChatMessage.created_at.label("last_message_at"),
            func.row_number()
            .over(
                partition_by=ChatMessage.conversation_id,
                order_by=(desc(ChatMessage.created_at), desc(ChatMessage.id)),
            )
            .label("row_pos"),
        ).subquery()

        unread = (
            select(
                ChatMessage.conversation_id.label("conversation_id"),
                func.sum(
                    case(
                        (and_(ChatMessage.sender_role == ROLE_USER, ChatMessage.read.is_(False)), 1),
                        else_=0,
                    )
                ).label("unread_count"),
            )
            .group_by(ChatMessage.conversation_id)
            .subquery()
        )

        stmt = (
            select(
                ranked.c.conversation_id,
                ranked.c.last_message,
                ranked.c.last_message_at,
                unread.c.unread_count,
            )
            .join(unread, unread.c.conversation_id == ranked.c.conversation_id)
            .where(ranked.c.row_pos == 1)
            .order_by(desc(ranked.c.last_message_at))
        )
        rows = (await self.db.execute(stmt)).all()

        user_ids = []
        for row in rows:
            try:
                user_ids.append(user_id_from_conversation(row.conversation_id))
            except NotFoundError:
                continue
        users = await self.get_users(user_ids)

        summaries = []
        for row in rows:
            owner_id = row.conversation_id[len(CONVERSATION_PREFIX):]
            owner = users.get(int(owner_id)) if owner_id.isdigit() else None
            summaries.append(
                {
                    "conversation_id": row.conversation_id,
                    "user_id": owner_id,
                    "user_name": owner.name if owner else "Unknown User",
                    "user_email": owner.email if owner else "",
                    "last_message": row.last_message,
                    "last_message_at": row.last_message_at,
                    "unread_count": int(row.unread_count or 0),
                }
            )
        return summaries

    async def get_users(self, user_ids: List[int]) -> Dict[int, User]:
        if not user_ids:
            return {}
        result = await self.db.execute(select(User).where(User.id.in_(user_ids)))
        return {user.id: user for user in result.scalars()}

    async def get_conversation_owner(self, conversation_id: str) -> User:
        user_id = user_id_from_conversation(conversation_id)
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("Conversation not found")
        return user


def serialize_message(message: ChatMessage) -> dict:
    """JSON-совместимое представление сообщения."""
    return {
        "id": message.id,
        "senderId": message.sender_id,
        "senderRole": message.sender_role,
        "message": message.message,
        "read": message.read,
        "createdAt": message.created_at.isoformat(),
    }
