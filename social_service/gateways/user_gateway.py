# social_service/gateways/user_gateway.py
from datetime import datetime

from sqlalchemy import delete, exists, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.gateways.interfaces import IUserGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.data_mappers import UserMapper
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UnitOfWork, UoWModel

PROFILE_FIELDS = (
    "username",
    "email",
    "full_name",
    "age",
    "gender",
    "city",
    "profile_pic",
    "fcm_token",
    "auto_delete_chat",
    "is_active",
)


class UserGateway(IUserGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.User] = UserMapper(session)

    async def get_user(self, user_id: int) -> UoWModel | None:
        stmt = select(models.User).filter(models.User.id == user_id)
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def get_by_email(self, email: str) -> UoWModel | None:
        stmt = select(models.User).filter(
            func.lower(models.User.email) == func.lower(email)
        )
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def get_by_username(self, username: str) -> UoWModel | None:
        stmt = select(models.User).filter(
            func.lower(models.User.username) == func.lower(username)
        )
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        return UoWModel(user, self.uow) if user else None

    async def get_all(
        self, skip: int = 0, limit: int = 100, username: str | None = None
    ) -> list[UoWModel]:
        stmt = select(models.User)
        if username:
            stmt = stmt.filter(models.User.username.ilike(f"%{username}%"))
        stmt = stmt.order_by(models.User.id).offset(skip).limit(limit)
        result = await self.session.execute(stmt)
        return [UoWModel(user, self.uow) for user in result.scalars().all()]

    async def get_many(self, user_ids: list[int]) -> list[UoWModel]:
        if not user_ids:
            return []
        stmt = select(models.User).filter(models.User.id.in_(user_ids))
        result = await self.session.execute(stmt)
        return [UoWModel(user, self.uow) for user in result.scalars().all()]

    async def create_user(
        self, user: schemas.UserCreate, security_service: SecurityService
    ) -> UoWModel | None:
        if await self.get_by_email(user.email):
            return None
        if await self.get_by_username(user.username):
            return None

        hashed_password = security_service.get_password_hash(user.password)
        db_user = models.User(
            **user.model_dump(exclude={"password"}), hashed_password=hashed_password
        )
        return self.uow.register_new(db_user)

    async def update_user(
        self,
        user: UoWModel,
        user_update: schemas.UserUpdate,
        security_service: SecurityService,
    ) -> UoWModel:
        data = user_update.model_dump(exclude_unset=True)
        if data.get("password"):
            user.hashed_password = security_service.get_password_hash(data["password"])
        for field in PROFILE_FIELDS:
            if field in data:
                setattr(user, field, data[field])
        return user

    async def delete_user(self, user_id: int) -> UoWModel | None:
        user = await self.get_user(user_id)
        if user:
            self.uow.register_deleted(user)
        return user

    async def search_users(self, query: str, current_user_id: int) -> list[UoWModel]:
        stmt = select(models.User).filter(
            models.User.id != current_user_id,
            models.User.username.ilike(f"%{query}%"),
        )
        result = await self.session.execute(stmt)
        return [UoWModel(user, self.uow) for user in result.scalars().all()]

    async def verify_password(
        self, user: UoWModel, password: str, security_service: SecurityService
    ) -> bool:
        return security_service.verify_password(password, user._model.hashed_password)

    # presence

    async def set_presence(
        self, user_id: int, is_online: bool, last_seen: datetime
    ) -> None:
        stmt = (
            update(models.User)
            .where(models.User.id == user_id)
            .values(is_online=is_online, last_seen=last_seen)
        )
        await self.session.execute(stmt)

    async def touch_last_seen(self, user_id: int, last_seen: datetime) -> None:
        stmt = (
            update(models.User)
            .where(models.User.id == user_id)
            .values(last_seen=last_seen)
        )
        await self.session.execute(stmt)

    # blocks and restrictions

    async def get_blockers_of(self, sender_id: int, user_ids: list[int]) -> list[int]:
        """Ids among ``user_ids`` whose block list contains ``sender_id``."""
        if not user_ids:
            return []
        stmt = select(models.user_blocks.c.user_id).where(
            models.user_blocks.c.blocked_user_id == sender_id,
            models.user_blocks.c.user_id.in_(user_ids),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_restricted_ids(self, user_id: int) -> set[int]:
        stmt = select(models.user_restrictions.c.restricted_user_id).where(
            models.user_restrictions.c.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def _set_relation(self, table, target_column: str, user_id: int, target_id: int, on: bool) -> bool:
        target = table.c[target_column]
        condition = (table.c.user_id == user_id) & (target == target_id)
        present = await self.session.scalar(select(exists().where(condition)))
        if on and not present:
            await self.session.execute(
                insert(table).values({"user_id": user_id, target_column: target_id})
            )
            return True
        if not on and present:
            await self.session.execute(delete(table).where(condition))
            return True
        return False

    async def set_blocked(self, user_id: int, target_id: int, blocked: bool) -> bool:
        return await self._set_relation(
            models.user_blocks, "blocked_user_id", user_id, target_id, blocked
        )

    async def set_restricted(
        self, user_id: int, target_id: int, restricted: bool
    ) -> bool:
        return await self._set_relation(
            models.user_restrictions,
            "restricted_user_id",
            user_id,
            target_id,
            restricted,
        )

    async def list_blocked(self, user_id: int) -> list[UoWModel]:
        stmt = (
            select(models.User)
            .join(
                models.user_blocks,
                models.user_blocks.c.blocked_user_id == models.User.id,
            )
            .where(models.user_blocks.c.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return [UoWModel(user, self.uow) for user in result.scalars().all()]

    async def list_restricted(self, user_id: int) -> list[UoWModel]:
        stmt = (
            select(models.User)
            .join(
                models.user_restrictions,
                models.user_restrictions.c.restricted_user_id == models.User.id,
            )
            .where(models.user_restrictions.c.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return [UoWModel(user, self.uow) for user in result.scalars().all()]

    async def get_auto_delete_users(self) -> list[tuple[int, str]]:
        stmt = select(models.User.id, models.User.auto_delete_chat).where(
            models.User.auto_delete_chat != "never"
        )
        result = await self.session.execute(stmt)
        return [(row.id, row.auto_delete_chat) for row in result]
