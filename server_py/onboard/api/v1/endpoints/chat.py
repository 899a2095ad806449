from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from onboard.core.config import settings
from onboard.core.database import get_db
from onboard.core.dependencies import get_dispatcher, require_user
from onboard.core.security import Identity
from onboard.schemas.chat import (
    ChatMessageCreate,
    ChatMessageResponse,
    SendMessageResponse,
    UserConversationResponse,
)
from onboard.services.chat import ChatService, conversation_id_for, serialize_message
from onboard.services.notifications import NotificationDispatcher, user_message_notification
from onboard.services.user import UserService
from onboard.websockets.chat_ws import chat_manager

router = APIRouter()


@router.get("/messages", response_model=UserConversationResponse)
async def get_my_messages(
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Сообщения собственного диалога; ответы администраторов помечаются прочитанными."""
    conversation_id = conversation_id_for(identity.user_id)
    messages = await ChatService(db).list_messages(
        conversation_id,
        limit=settings.USER_CHAT_LIMIT,
        reader_role=identity.role,
    )
    return UserConversationResponse(
        messages=[ChatMessageResponse.model_validate(m) for m in messages],
        conversation_id=conversation_id,
    )


@router.post(
    "/messages",
    response_model=SendMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_my_message(
    payload: ChatMessageCreate,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    conversation_id = conversation_id_for(identity.user_id)
    message = await ChatService(db).append_message(
        identity,
        conversation_id,
        payload.message,
        sender_role=payload.sender_role,
    )

    background_tasks.add_task(
        chat_manager.push_message, identity.user_id, {"type": "message", "data": serialize_message(message)}
    )

    sender = await UserService(db).get_by_id(identity.user_id)
    notification = user_message_notification(
        conversation_id,
        sender.name if sender else "a user",
        message.message,
    )
    background_tasks.add_task(dispatcher.dispatch_in_background, notification)

    return SendMessageResponse(message=ChatMessageResponse.model_validate(message))
