# social_service/tests/unit/test_user_interactor.py
from unittest.mock import Mock

import pytest

from social_service.domain.errors import ValidationError
from social_service.gateways.interfaces import IUserGateway
from social_service.infrastructure import schemas
from social_service.interactors.user_interactor import UserInteractor


@pytest.fixture
def user_interactor(uow, security_service, user_gateway):
    return UserInteractor(uow, security_service, user_gateway)


class TestUserInteractor:
    @pytest.mark.asyncio
    async def test_get_user_found(self, user_interactor, test_user):
        result = await user_interactor.get_user(test_user.id)

        assert isinstance(result, schemas.User)
        assert result.username == test_user.username
        assert result.auto_delete_chat == "never"

    @pytest.mark.asyncio
    async def test_get_user_not_found(self, user_interactor):
        assert await user_interactor.get_user(999) is None

    @pytest.mark.asyncio
    async def test_create_user(self, user_interactor):
        created = await user_interactor.create_user(
            schemas.UserCreate(username="fresh", email="fresh@example.com", password="password123")
        )

        assert created.id is not None
        assert created.is_online is False
        assert await user_interactor.verify_user_password("fresh", "password123") is not None
        assert await user_interactor.verify_user_password("fresh", "wrongpass1") is None

    @pytest.mark.asyncio
    async def test_create_duplicate_user(self, user_interactor, test_user):
        duplicate = schemas.UserCreate(
            username=test_user.username, email="other@example.com", password="password123"
        )
        assert await user_interactor.create_user(duplicate) is None

    @pytest.mark.asyncio
    async def test_update_profile_and_policy(self, user_interactor, test_user):
        updated = await user_interactor.update_user(
            test_user.id,
            schemas.UserUpdate(city="Lagos", auto_delete_chat="1w", fcm_token="tok"),
        )

        assert updated.city == "Lagos"
        assert updated.auto_delete_chat == "1w"

    @pytest.mark.asyncio
    async def test_update_missing_user(self, user_interactor):
        assert await user_interactor.update_user(999, schemas.UserUpdate(city="x")) is None

    @pytest.mark.asyncio
    async def test_search_users(self, user_interactor, test_user, test_user2):
        found = await user_interactor.search_users("testuser2", test_user.id)
        assert [user.id for user in found] == [test_user2.id]

    @pytest.mark.asyncio
    async def test_delete_user(self, user_interactor, make_user):
        doomed = await make_user("doomed")
        assert await user_interactor.delete_user(doomed.id) is True
        assert await user_interactor.delete_user(doomed.id) is False

    @pytest.mark.asyncio
    async def test_online_users_sorted(self, user_interactor, presence):
        await presence.register(9, "a")
        await presence.register(3, "b")

        result = await user_interactor.online_users(presence)

        assert result.user_ids == [3, 9]
        assert result.model_dump(by_alias=True) == {"userIds": [3, 9]}


@pytest.mark.asyncio
async def test_update_rejects_unknown_policy_before_touching_gateway(uow, security_service):
    gateway = Mock(spec=IUserGateway)
    gateway.get_user.return_value = Mock()
    update = schemas.UserUpdate.model_construct(auto_delete_chat="fortnight")

    interactor = UserInteractor(uow, security_service, gateway)
    with pytest.raises(ValidationError):
        await interactor.update_user(1, update)
    gateway.update_user.assert_not_called()
