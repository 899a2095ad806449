from typing import AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from onboard.core.database import Base, get_db
from onboard.core.dependencies import get_dispatcher
from onboard.core.errors import DeliveryError
from onboard.core.init_db import init_db  # noqa: F401  (registers models on Base.metadata)
from onboard.core.security import ACCESS_COOKIE, ROLE_ADMIN, create_access_token
from onboard.main import app
from onboard.models.user import User
from onboard.services.notifications import NotificationDispatcher
from onboard.services.user import UserService


class FakeSender:
    """Scripted push transport: per endpoint, a queue of status codes (None = delivered)."""

    enabled = True

    def __init__(self) -> None:
        self.script: Dict[str, List[Optional[int]]] = {}
        self.calls: List[tuple] = []

    def fail(self, endpoint: str, *outcomes: Optional[int]) -> None:
        self.script[endpoint] = list(outcomes)

    async def send(self, subscription_info: dict, payload: dict) -> None:
        endpoint = subscription_info["endpoint"]
        self.calls.append((endpoint, payload))
        outcomes = self.script.get(endpoint)
        if outcomes:
            status_code = outcomes.pop(0)
            if status_code is not None:
                raise DeliveryError(f"Push failed: {status_code}", status_code=status_code)

    def endpoints(self) -> List[str]:
        return [endpoint for endpoint, _ in self.calls]


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def dispatcher(session_factory, sender, sleep) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory, sender, sleep=sleep)


@pytest_asyncio.fixture
async def alice(db) -> User:
    return await UserService(db).create(name="Alice", email="alice@example.com", password="alice-pass")


@pytest_asyncio.fixture
async def bob(db) -> User:
    return await UserService(db).create(name="Bob", email="bob@example.com", password="bob-pass")


@pytest_asyncio.fixture
async def admin(db) -> User:
    return await UserService(db).create(name="Admin", email="admin@system.local", role=ROLE_ADMIN)


def auth_cookie(user: User) -> dict:
    """Cookie header carrying a fresh access token for ``user``."""
    return {"Cookie": f"{ACCESS_COOKIE}={create_access_token(user.id, user.role)}"}


@pytest_asyncio.fixture
async def client(session_factory, dispatcher) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
