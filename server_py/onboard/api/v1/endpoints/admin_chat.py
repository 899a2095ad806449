from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from onboard.core.config import settings
from onboard.core.database import get_db
from onboard.core.dependencies import get_dispatcher, require_admin
from onboard.core.security import Identity
from onboard.schemas.chat import (
    AdminConversationResponse,
    ChatMessageCreate,
    ChatMessageResponse,
    ConversationListResponse,
    ConversationSummary,
    ConversationUser,
    SendMessageResponse,
)
from onboard.services.chat import ChatService, serialize_message
from onboard.services.notifications import NotificationDispatcher, admin_reply_notification
from onboard.websockets.chat_ws import chat_manager

router = APIRouter()


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Сводка по всем диалогам, сначала самые свежие."""
    summaries = await ChatService(db).list_conversations()
    return ConversationListResponse(
        conversations=[ConversationSummary.model_validate(summary) for summary in summaries]
    )


@router.get("/messages/{conversation_id}", response_model=AdminConversationResponse)
async def get_conversation(
    conversation_id: str,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    service = ChatService(db)
    owner = await service.get_conversation_owner(conversation_id)
    messages = await service.list_messages(
        conversation_id,
        limit=settings.ADMIN_CHAT_LIMIT,
        reader_role=identity.role,
    )
    return AdminConversationResponse(
        messages=[ChatMessageResponse.model_validate(m) for m in messages],
        user=ConversationUser(id=owner.id, name=owner.name, email=owner.email),
        admin_id=identity.user_id,
    )


@router.post(
    "/messages/{conversation_id}",
    response_model=SendMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def reply_to_conversation(
    conversation_id: str,
    payload: ChatMessageCreate,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    service = ChatService(db)
    owner = await service.get_conversation_owner(conversation_id)
    message = await service.append_message(
        identity,
        conversation_id,
        payload.message,
        sender_role=payload.sender_role,
    )

    background_tasks.add_task(
        chat_manager.push_message, owner.id, {"type": "message", "data": serialize_message(message)}
    )

    background_tasks.add_task(
        dispatcher.dispatch_in_background,
        admin_reply_notification(conversation_id, message.message),
        [owner.id],
    )

    return SendMessageResponse(message=ChatMessageResponse.model_validate(message))
