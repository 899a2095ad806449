from onboard.core.config import settings
from onboard.core.database import Base, engine

# Импортируем модели чтобы они попали в metadata перед созданием таблиц
from onboard.models import user  # noqa: F401
from onboard.models import chat_message  # noqa: F401
from onboard.models import push_subscription  # noqa: F401


async def init_db():
    """Инициализация базы данных и создание таблиц"""
    if settings.DATABASE_URL.startswith("sqlite"):
        # Гарантируем наличие директории для файла базы данных
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
