from __future__ import annotations

import hmac

from sqlalchemy.ext.asyncio import AsyncSession

from onboard.core.config import settings
from onboard.core.errors import AppError, AuthError, NotFoundError
from onboard.core.security import ROLE_ADMIN, TokenPair, decode_refresh_token, issue_tokens
from onboard.models.user import User
from onboard.services.user import UserService


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserService(db)

    async def signin(self, email: str, password: str) -> tuple[User, TokenPair]:
        user = await self.users.authenticate(email, password)
        if user is None:
            raise AuthError("Invalid credentials")
        return user, issue_tokens(user.id, user.role)

    async def admin_login(self, password: str) -> tuple[User, TokenPair]:
        """Вход администратора по общему паролю; учетная запись создается при первом входе."""
        if not settings.ADMIN_PASSWORD:
            raise AppError("Admin password not configured")
        if not hmac.compare_digest(password.encode("utf-8"), settings.ADMIN_PASSWORD.encode("utf-8")):
            raise AuthError("Invalid admin password")

        admin = await self.users.get_by_email(settings.ADMIN_EMAIL)
        if admin is None:
            admin = await self.users.create(name="Admin", email=settings.ADMIN_EMAIL, role=ROLE_ADMIN)
        elif admin.role != ROLE_ADMIN:
            admin.role = ROLE_ADMIN
            await self.db.commit()
            await self.db.refresh(admin)
        return admin, issue_tokens(admin.id, admin.role)

    async def refresh(self, refresh_token: str) -> TokenPair:
        user_id = decode_refresh_token(refresh_token)
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise AuthError("Invalid refresh token")
        return issue_tokens(user.id, user.role)

    async def get_current_user(self, user_id: int) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
