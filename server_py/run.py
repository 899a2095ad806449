import sys
from pathlib import Path

# Добавляем корневую директорию проекта в PYTHONPATH
sys.path.append(str(Path(__file__).resolve().parent))

import asyncio

import uvicorn
from onboard.core.config import settings
from onboard.core.init_db import init_db

if __name__ == "__main__":
    # Создаем таблицы в базе данных
    asyncio.run(init_db())

    # Запускаем сервер
    uvicorn.run(
        "onboard.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=False
    )
