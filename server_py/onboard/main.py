import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from onboard.core.config import settings
from onboard.core.errors import register_exception_handlers
from onboard.api.v1.api import api_router
from onboard.websockets.chat_ws import router as chat_ws_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

register_exception_handlers(app)

# Настройка CORS (cookies требуют явного списка источников)
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Роутеры API v1
app.include_router(api_router, prefix=settings.API_V1_STR)

# Вебсокет чата поддержки
app.include_router(chat_ws_router)


@app.get("/sw.js", include_in_schema=False)
async def service_worker() -> FileResponse:
    """Service worker, который показывает push-уведомления в браузере."""
    return FileResponse(
        settings.STATIC_DIR / "sw.js",
        media_type="application/javascript",
        headers={"Service-Worker-Allowed": "/", "Cache-Control": "no-cache"},
    )


@app.get("/health", include_in_schema=False)
async def health() -> dict:
    return {"ok": True}
