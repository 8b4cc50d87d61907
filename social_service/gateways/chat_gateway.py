# social_service/gateways/chat_gateway.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, exists, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.gateways.interfaces import IChatGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.data_mappers import ChatMapper
from social_service.infrastructure.uow import UnitOfWork, UoWModel


def private_key(user_id1: int, user_id2: int) -> str:
    low, high = sorted((user_id1, user_id2))
    return f"{low}:{high}"


class ChatGateway(IChatGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.Chat] = ChatMapper(session)

    async def get_chat(self, chat_id: int) -> Optional[UoWModel]:
        stmt = select(models.Chat).filter(models.Chat.id == chat_id)
        result = await self.session.execute(stmt)
        chat = result.scalar_one_or_none()
        return UoWModel(chat, self.uow) if chat else None

    async def find_private_chat(
        self, user_id1: int, user_id2: int
    ) -> Optional[UoWModel]:
        stmt = select(models.Chat).filter(
            models.Chat.private_key == private_key(user_id1, user_id2)
        )
        result = await self.session.execute(stmt)
        chat = result.scalar_one_or_none()
        return UoWModel(chat, self.uow) if chat else None

    async def create_private_chat(
        self, user_id1: int, user_id2: int
    ) -> Optional[UoWModel]:
        stmt = select(models.User).filter(models.User.id.in_([user_id1, user_id2]))
        result = await self.session.execute(stmt)
        participants = list(result.scalars().all())
        if len(participants) != len({user_id1, user_id2}):
            return None
        db_chat = models.Chat(
            is_group=False,
            private_key=private_key(user_id1, user_id2),
            participants=participants,
        )
        return self.uow.register_new(db_chat)

    async def create_group(
        self, admin_id: int, group: schemas.GroupCreate
    ) -> UoWModel:
        member_ids = set(group.participants) | {admin_id}
        stmt = select(models.User).filter(models.User.id.in_(member_ids))
        result = await self.session.execute(stmt)
        db_chat = models.Chat(
            is_group=True,
            group_name=group.group_name,
            group_theme=group.group_theme,
            group_photo=group.group_photo,
            admin_id=admin_id,
            participants=list(result.scalars().all()),
        )
        return self.uow.register_new(db_chat)

    async def get_groups_for_user(self, user_id: int) -> List[UoWModel]:
        stmt = (
            select(models.Chat)
            .filter(models.Chat.is_group.is_(True))
            .filter(models.Chat.participants.any(models.User.id == user_id))
            .order_by(models.Chat.last_activity.desc())
        )
        result = await self.session.execute(stmt)
        return [UoWModel(chat, self.uow) for chat in result.scalars().all()]

    async def add_member(self, chat: UoWModel, user_id: int) -> bool:
        if user_id in chat.participant_ids:
            return False
        user = await self.session.get(models.User, user_id)
        if user is None:
            return False
        chat._model.participants.append(user)
        self.uow.register_dirty(chat)
        return True

    async def remove_member(self, chat: UoWModel, user_id: int) -> bool:
        if user_id not in chat.participant_ids:
            return False
        chat._model.participants = [
            user for user in chat._model.participants if user.id != user_id
        ]
        self.uow.register_dirty(chat)
        return True

    async def touch_activity(self, chat_id: int, at: datetime) -> None:
        stmt = (
            update(models.Chat)
            .where(models.Chat.id == chat_id)
            .values(last_activity=at)
        )
        await self.session.execute(stmt)

    async def set_pinned(self, chat_id: int, message_id: int, pinned: bool) -> None:
        table = models.chat_pinned_messages
        condition = (table.c.chat_id == chat_id) & (table.c.message_id == message_id)
        present = await self.session.scalar(select(exists().where(condition)))
        if pinned and not present:
            await self.session.execute(
                insert(table).values(chat_id=chat_id, message_id=message_id)
            )
        elif not pinned and present:
            await self.session.execute(delete(table).where(condition))

    async def refresh(self, chat: UoWModel) -> UoWModel:
        await self.session.refresh(chat._model, ["participants", "pinned_messages"])
        return chat
