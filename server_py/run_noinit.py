import sys
from pathlib import Path

# Добавляем корневую директорию проекта в PYTHONPATH
sys.path.append(str(Path(__file__).resolve().parent))

import uvicorn
from onboard.core.config import settings

if __name__ == "__main__":
    # Запускаем сервер без init_db (схема уже создана миграциями)
    uvicorn.run(
        "onboard.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=False
    )
