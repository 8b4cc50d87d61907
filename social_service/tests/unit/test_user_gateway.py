# social_service/tests/unit/test_user_gateway.py
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UnitOfWork, UoWModel


@pytest.fixture
def mock_session():
    session = Mock(spec=AsyncSession)
    session.execute = AsyncMock()
    return session


@pytest.fixture
def mock_uow():
    uow = Mock(spec=UnitOfWork)
    uow.mappers = {}
    uow.register_new = Mock()
    uow.register_dirty = Mock()
    uow.register_deleted = Mock()
    uow.new = {}
    return uow


@pytest.fixture
def mock_security_service():
    service = Mock(spec=SecurityService)
    service.get_password_hash = Mock(return_value="hashed_password")
    service.verify_password = Mock(return_value=True)
    return service


@pytest.fixture
def mocked_gateway(mock_session, mock_uow):
    return UserGateway(mock_session, mock_uow)


@pytest.fixture
def mock_user():
    user = Mock(spec=models.User)
    user.id = 1
    user.username = "testuser"
    user.email = "test@example.com"
    user.hashed_password = "hashed_password"
    user.is_active = True
    return user


class TestUserGatewayLookups:
    @pytest.mark.asyncio
    async def test_get_user_found(self, mocked_gateway, mock_session, mock_user):
        mock_result = Mock()
        mock_result.scalar_one_or_none.return_value = mock_user
        mock_session.execute.return_value = mock_result

        result = await mocked_gateway.get_user(1)

        assert isinstance(result, UoWModel)
        assert result._model == mock_user
        mock_session.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_user_not_found(self, mocked_gateway, mock_session):
        mock_result = Mock()
        mock_result.scalar_one_or_none.return_value = None
        mock_session.execute.return_value = mock_result

        assert await mocked_gateway.get_user(999) is None

    @pytest.mark.asyncio
    async def test_create_user_success(self, mocked_gateway, mock_security_service, mock_uow):
        mocked_gateway.get_by_email = AsyncMock(return_value=None)
        mocked_gateway.get_by_username = AsyncMock(return_value=None)
        registered = Mock()
        mock_uow.register_new.return_value = registered

        user_create = schemas.UserCreate(
            username="newuser", email="new@example.com", password="password123"
        )
        result = await mocked_gateway.create_user(user_create, mock_security_service)

        assert result == registered
        mock_security_service.get_password_hash.assert_called_once_with("password123")
        mock_uow.register_new.assert_called_once()

    @pytest.mark.asyncio
    async def test_create_user_email_exists(self, mocked_gateway, mock_security_service, mock_user, mock_uow):
        mocked_gateway.get_by_email = AsyncMock(return_value=UoWModel(mock_user, mock_uow))

        user_create = schemas.UserCreate(
            username="newuser", email="test@example.com", password="password123"
        )
        result = await mocked_gateway.create_user(user_create, mock_security_service)

        assert result is None
        mock_security_service.get_password_hash.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_user_with_password(self, mocked_gateway, mock_user, mock_uow, mock_security_service):
        uow_user = UoWModel(mock_user, mock_uow)

        await mocked_gateway.update_user(
            uow_user, schemas.UserUpdate(password="newpassword", city="Oslo"), mock_security_service
        )

        mock_security_service.get_password_hash.assert_called_once_with("newpassword")
        assert mock_user.hashed_password == "hashed_password"
        assert mock_user.city == "Oslo"
        mock_uow.register_dirty.assert_called()


@pytest.mark.asyncio
async def test_lookups_are_case_insensitive(user_gateway, test_user):
    assert (await user_gateway.get_by_username(test_user.username.upper())).id == test_user.id
    assert (await user_gateway.get_by_email(test_user.email.upper())).id == test_user.id


@pytest.mark.asyncio
async def test_search_excludes_self(user_gateway, test_user, test_user2):
    found = await user_gateway.search_users("testuser", test_user.id)
    ids = [user.id for user in found]
    assert test_user2.id in ids
    assert test_user.id not in ids


@pytest.mark.asyncio
async def test_set_presence(user_gateway, uow, test_user, database):
    seen = datetime(2024, 1, 1, tzinfo=UTC)
    await user_gateway.set_presence(test_user.id, True, seen)
    await uow.commit()

    async with database.session() as session:
        stored = await session.get(models.User, test_user.id)
    assert stored.is_online is True


@pytest.mark.asyncio
async def test_block_toggle_is_idempotent(user_gateway, uow, test_user, test_user2):
    assert await user_gateway.set_blocked(test_user.id, test_user2.id, True) is True
    assert await user_gateway.set_blocked(test_user.id, test_user2.id, True) is False
    await uow.commit()

    assert [u.id for u in await user_gateway.list_blocked(test_user.id)] == [test_user2.id]
    assert await user_gateway.get_blockers_of(test_user2.id, [test_user.id]) == [test_user.id]
    # blocking is directional
    assert await user_gateway.get_blockers_of(test_user.id, [test_user2.id]) == []

    assert await user_gateway.set_blocked(test_user.id, test_user2.id, False) is True
    assert await user_gateway.list_blocked(test_user.id) == []


@pytest.mark.asyncio
async def test_restrictions(user_gateway, uow, test_user, test_user2):
    await user_gateway.set_restricted(test_user.id, test_user2.id, True)
    await uow.commit()

    assert await user_gateway.get_restricted_ids(test_user.id) == {test_user2.id}
    assert await user_gateway.get_restricted_ids(test_user2.id) == set()
    assert [u.id for u in await user_gateway.list_restricted(test_user.id)] == [test_user2.id]


@pytest.mark.asyncio
async def test_auto_delete_users(user_gateway, make_user, test_user):
    sweeping = await make_user("sweep", auto_delete_chat="1w")

    users = await user_gateway.get_auto_delete_users()

    assert (sweeping.id, "1w") in users
    assert test_user.id not in [user_id for user_id, _ in users]


@pytest.mark.asyncio
async def test_delete_user(user_gateway, uow, make_user, database):
    doomed = await make_user("doomed")

    await user_gateway.delete_user(doomed.id)
    await uow.commit()

    async with database.session() as session:
        assert await session.scalar(
            select(models.User).filter(models.User.id == doomed.id)
        ) is None
