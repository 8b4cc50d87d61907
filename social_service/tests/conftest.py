# social_service/tests/conftest.py
import json
import logging
import os
import random
import string

# main.py builds an app at import time, which needs the secrets
os.environ.setdefault("SECRET_KEY", "test_secret_key")
os.environ.setdefault("REFRESH_SECRET_KEY", "test_refresh_secret_key")

import pytest
from fakeredis import aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from social_service.api import dependencies
from social_service.config import AppConfig
from social_service.gateways.ad_gateway import AdGateway
from social_service.gateways.chat_gateway import ChatGateway
from social_service.gateways.message_gateway import MessageGateway
from social_service.gateways.token_gateway import TokenGateway
from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.connection_manager import ConnectionManager
from social_service.infrastructure.database import (
    create_database,
    enable_sqlite_foreign_keys,
)
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.presence import (
    InMemoryPresenceStore,
    PresenceTracker,
)
from social_service.infrastructure.push import LoggingPushNotifier
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UnitOfWork
from social_service.main import Application


class FakeWebSocket:
    """Records frames sent by the ConnectionManager."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))

    def events(self, name: str) -> list:
        return [frame["data"] for frame in self.sent if frame["event"] == name]


def random_suffix(k: int = 10) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=k))


@pytest.fixture(scope="function")
def app_config():
    """
    Provide a test configuration with a shared in-memory SQLite database.
    """
    return AppConfig(
        DATABASE_URL="sqlite+aiosqlite:///:memory:?cache=shared",
        REDIS_HOST="localhost",
        REDIS_PORT=6379,
        SECRET_KEY="test_secret_key",
        REFRESH_SECRET_KEY="test_refresh_secret_key",
        PROJECT_NAME="Test Social API",
        ALGORITHM="HS256",
        ACCESS_TOKEN_EXPIRE_MINUTES=5,
        REFRESH_TOKEN_EXPIRE_DAYS=7,
        PRESENCE_BACKEND="memory",
        SWEEPER_ENABLED=False,
        FCM_SERVER_KEY=None,
    )


@pytest.fixture(scope="function")
def logger():
    return logging.getLogger("SocialAPI.tests")


@pytest.fixture(scope="function")
async def mock_redis():
    """Provide a fake Redis client for testing."""
    redis = aioredis.FakeRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


@pytest.fixture(scope="function")
async def engine(app_config):
    """Create a SQLAlchemy engine for testing with shared in-memory SQLite."""
    engine = create_async_engine(
        app_config.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Reuse the same connection
        echo=False,
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        from social_service.infrastructure import models

        await conn.run_sync(models.Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def database(engine):
    return create_database(engine)


@pytest.fixture(scope="function")
async def db_session(engine):
    """Provide a SQLAlchemy session for testing."""
    async_session_factory = sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False
    )
    session = async_session_factory()
    yield session
    await session.close()


@pytest.fixture(scope="function")
async def uow(db_session):
    """Provide a UnitOfWork bound to the test session."""
    return UnitOfWork(db_session)


@pytest.fixture(scope="function")
def security_service(app_config):
    return SecurityService(app_config)


@pytest.fixture(scope="function")
def user_gateway(db_session, uow):
    return UserGateway(db_session, uow)


@pytest.fixture(scope="function")
def chat_gateway(db_session, uow):
    return ChatGateway(db_session, uow)


@pytest.fixture(scope="function")
def message_gateway(db_session, uow):
    return MessageGateway(db_session, uow)


@pytest.fixture(scope="function")
def token_gateway(db_session, uow):
    return TokenGateway(db_session, uow)


@pytest.fixture(scope="function")
def ad_gateway(db_session, uow):
    return AdGateway(db_session, uow)


@pytest.fixture(scope="function")
def make_user(user_gateway, uow, security_service):
    """Factory creating committed users; extra keyword args are profile fields."""

    async def _make_user(prefix: str = "user", password: str = "testpassword", **fields):
        suffix = random_suffix()
        user_create = schemas.UserCreate(
            username=f"{prefix}_{suffix}",
            email=f"{prefix}_{suffix}@example.com",
            password=password,
        )
        user = await user_gateway.create_user(user_create, security_service)
        for field, value in fields.items():
            setattr(user._model, field, value)
        await uow.commit()
        return user

    return _make_user


@pytest.fixture(scope="function")
async def test_user(make_user):
    """Create a test user in the database."""
    return await make_user("testuser", full_name="Test User")


@pytest.fixture(scope="function")
async def test_user2(make_user):
    """Create a second test user in the database."""
    return await make_user("testuser2", password="testpassword2")


@pytest.fixture(scope="function")
async def private_chat(chat_gateway, uow, test_user, test_user2):
    chat = await chat_gateway.create_private_chat(test_user.id, test_user2.id)
    await uow.commit()
    return chat


@pytest.fixture(scope="function")
async def group_chat(chat_gateway, uow, test_user, test_user2):
    """A group administered by test_user with test_user2 as member."""
    chat = await chat_gateway.create_group(
        test_user.id,
        schemas.GroupCreate(group_name="Test Group", participants=[test_user2.id]),
    )
    await uow.commit()
    return chat


@pytest.fixture(scope="function")
def connections(logger):
    return ConnectionManager(logger)


@pytest.fixture(scope="function")
def status_writes():
    return []


@pytest.fixture(scope="function")
def presence(connections, status_writes, logger):
    async def _write(user_id, is_online, at):
        status_writes.append((user_id, is_online))

    tracker = PresenceTracker(InMemoryPresenceStore(), _write, connections, logger)
    connections.add_drop_listener(tracker.connection_dropped)
    return tracker


@pytest.fixture(scope="function")
def push_notifier(logger):
    return LoggingPushNotifier(logger)


@pytest.fixture(scope="function")
def event_dispatcher(logger):
    return EventDispatcher(logger)


@pytest.fixture(scope="function")
async def app(app_config, mock_redis, engine):
    """Create the FastAPI app with the test database."""
    application = Application(config=app_config, engine=engine)
    application.redis_client.client = mock_redis

    return application.create_app()


@pytest.fixture(scope="function")
def override_get_db(db_session):
    """Override the get_session dependency to use the test session."""

    async def _override_get_db():
        yield db_session

    return _override_get_db


@pytest.fixture(scope="function")
async def app_with_db(app, override_get_db):
    """Override dependencies to use the test database session."""
    app.dependency_overrides[dependencies.get_session] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(app_with_db):
    """Provide an HTTP client with the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app_with_db), base_url="http://test"
    ) as ac:
        yield ac


async def login(client, username: str, password: str) -> dict:
    response = await client.post(
        "/api/v1/auth/login", data={"username": username, "password": password}
    )
    assert response.status_code == 200, f"Login failed: {response.json()}"
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture(scope="function")
async def auth_header(client, test_user, db_session, uow):
    """Provide an authorization header for authenticated requests."""
    header = await login(client, test_user.username, "testpassword")
    access_token = header["Authorization"].split(" ", 1)[1]

    token = await TokenGateway(db_session, uow).get_by_access_token(access_token)
    assert token is not None, "Access token was not stored in the database"
    return header


@pytest.fixture(scope="function")
async def auth_header2(client, test_user2):
    return await login(client, test_user2.username, "testpassword2")


@pytest.fixture(scope="function")
def fake_ws():
    """Factory for recorded sockets: ``fake_ws()`` or ``fake_ws(fail=True)``."""
    return FakeWebSocket
