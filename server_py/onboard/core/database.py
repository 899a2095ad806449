from datetime import datetime, timezone
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from onboard.core.config import settings

# Базовый класс для моделей
Base = declarative_base()

# Движок SQLAlchemy для асинхронной работы
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

# Фабрика сессий
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def utcnow() -> datetime:
    """Время UTC без tzinfo; все DateTime-колонки хранят UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """Фабрика сессий для работы после ответа (фоновая рассылка push)."""
    return AsyncSessionLocal
