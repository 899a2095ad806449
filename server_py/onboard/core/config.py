from pydantic_settings import BaseSettings
from pathlib import Path
from typing import List


class Settings(BaseSettings):
    # Project
    PROJECT_NAME: str = "Onboard API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    STATIC_DIR: Path = Path(__file__).resolve().parent.parent / "static"

    # Server
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 4001
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = f"sqlite+aiosqlite:///{DATA_DIR}/onboard.db"
    DATABASE_ECHO: bool = False

    # Security
    JWT_ACCESS_SECRET: str = "dev-access-secret"
    JWT_REFRESH_SECRET: str = "dev-refresh-secret"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    COOKIE_SECURE: bool = False

    # Admin login (пустой пароль отключает вход администратора)
    ADMIN_PASSWORD: str = ""
    ADMIN_EMAIL: str = "admin@system.local"

    # Web Push
    VAPID_PUBLIC_KEY: str = ""
    VAPID_PRIVATE_KEY: str = ""
    VAPID_CONTACT_EMAIL: str = "admin@system.local"
    PUSH_TTL_SECONDS: int = 60 * 60 * 24
    PUSH_MAX_RETRIES: int = 2
    PUSH_RATE_LIMIT_BACKOFF: float = 1.0
    PUSH_SERVER_ERROR_BACKOFF: float = 0.5
    PUSH_DEFAULT_ICON: str = "/onboard.png"
    PUSH_DEFAULT_BADGE: str = "/onboard.png"
    PUSH_DEFAULT_TAG: str = "notification"
    PUSH_CLEANUP_DEFAULT_DAYS: int = 30

    # Chat
    USER_CHAT_LIMIT: int = 100
    ADMIN_CHAT_LIMIT: int = 200
    MESSAGE_MAX_LENGTH: int = 2000
    WS_SEND_TIMEOUT_SECONDS: float = 5.0

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    @property
    def push_enabled(self) -> bool:
        return bool(self.VAPID_PUBLIC_KEY and self.VAPID_PRIVATE_KEY)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Создаем экземпляр настроек
settings = Settings()
