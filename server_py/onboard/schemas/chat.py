from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatMessageCreate(BaseModel):
    message: str
    sender_role: Optional[str] = Field(default=None, alias="senderRole")

    model_config = ConfigDict(populate_by_name=True)


class ChatMessageResponse(BaseModel):
    id: int
    sender_id: int = Field(alias="senderId")
    sender_role: str = Field(alias="senderRole")
    message: str
    read: bool
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ConversationUser(BaseModel):
    id: int
    name: str
    email: str


class ConversationSummary(BaseModel):
    conversation_id: str = Field(alias="conversationId")
    user_id: str = Field(alias="userId")
    user_name: str = Field(alias="userName")
    user_email: str = Field(alias="userEmail")
    last_message: str = Field(alias="lastMessage")
    last_message_at: datetime = Field(alias="lastMessageAt")
    unread_count: int = Field(alias="unreadCount")

    model_config = ConfigDict(populate_by_name=True)


class UserConversationResponse(BaseModel):
    success: bool = True
    messages: List[ChatMessageResponse]
    conversation_id: str = Field(alias="conversationId")

    model_config = ConfigDict(populate_by_name=True)


class AdminConversationResponse(BaseModel):
    success: bool = True
    messages: List[ChatMessageResponse]
    user: Optional[ConversationUser] = None
    admin_id: int = Field(alias="adminId")

    model_config = ConfigDict(populate_by_name=True)


class ConversationListResponse(BaseModel):
    success: bool = True
    conversations: List[ConversationSummary]


class SendMessageResponse(BaseModel):
    success: bool = True
    message: ChatMessageResponse
