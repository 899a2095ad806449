from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from onboard.core.security import ROLE_USER, hash_password, verify_password
from onboard.models.user import User


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Получение пользователя по ID"""
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Получение пользователя по email"""
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        name: str,
        email: str,
        password: Optional[str] = None,
        role: str = ROLE_USER,
    ) -> User:
        """Создание нового пользователя"""
        user = User(
            name=name.strip()[:60],
            email=email.strip().lower(),
            password_hash=hash_password(password) if password else None,
            role=role,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Аутентификация пользователя по email и паролю"""
        user = await self.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            return None
        return user
