# social_service/interactors/user_interactor.py

from social_service.domain.policies import auto_delete_window
from social_service.gateways.interfaces import IUserGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.presence import PresenceTracker
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UnitOfWork, UoWModel


class UserInteractor:
    def __init__(
        self,
        uow: UnitOfWork,
        security_service: SecurityService,
        user_gateway: IUserGateway,
    ):
        self.uow = uow
        self.security_service = security_service
        self.user_gateway = user_gateway

    async def get_user(self, user_id: int) -> schemas.User | None:
        user: UoWModel | None = await self.user_gateway.get_user(user_id)
        return schemas.User.model_validate(user._model) if user else None

    async def get_user_by_username(self, username: str) -> schemas.User | None:
        user: UoWModel | None = await self.user_gateway.get_by_username(username)
        return schemas.User.model_validate(user._model) if user else None

    async def get_user_by_email(self, email: str) -> schemas.User | None:
        user: UoWModel | None = await self.user_gateway.get_by_email(email)
        return schemas.User.model_validate(user._model) if user else None

    async def get_users(
        self, skip: int = 0, limit: int = 100, username: str | None = None
    ) -> list[schemas.User]:
        users = await self.user_gateway.get_all(skip, limit, username)
        return [schemas.User.model_validate(user._model) for user in users]

    async def create_user(self, user: schemas.UserCreate) -> schemas.User | None:
        new_user = await self.user_gateway.create_user(user, self.security_service)
        if new_user is None:
            return None
        await self.uow.commit()
        return schemas.User.model_validate(new_user._model)

    async def update_user(
        self, user_id: int, user_update: schemas.UserUpdate
    ) -> schemas.User | None:
        user = await self.user_gateway.get_user(user_id)
        if not user:
            return None
        if user_update.auto_delete_chat is not None:
            auto_delete_window(user_update.auto_delete_chat)
        updated_user = await self.user_gateway.update_user(
            user, user_update, self.security_service
        )
        await self.uow.commit()
        return schemas.User.model_validate(updated_user._model)

    async def delete_user(self, user_id: int) -> bool:
        user = await self.user_gateway.delete_user(user_id)
        if user is None:
            return False
        await self.uow.commit()
        return True

    async def search_users(
        self, query: str, current_user_id: int
    ) -> list[schemas.UserBasic]:
        users = await self.user_gateway.search_users(query, current_user_id)
        return [schemas.UserBasic.model_validate(user._model) for user in users]

    async def online_users(self, presence: PresenceTracker) -> schemas.OnlineUsers:
        return schemas.OnlineUsers(user_ids=sorted(await presence.list_online()))

    async def verify_user_password(
        self, username: str, password: str
    ) -> schemas.User | None:
        user = await self.user_gateway.get_by_username(username)
        if not user:
            return None
        if await self.user_gateway.verify_password(
            user, password, self.security_service
        ):
            return schemas.User.model_validate(user._model)
        return None
