from fastapi import APIRouter
from onboard.api.v1.endpoints import admin_chat, auth, chat, push

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
api_router.include_router(admin_chat.router, prefix="/admin/chat", tags=["admin-chat"])
api_router.include_router(push.router, prefix="/push", tags=["push"])
