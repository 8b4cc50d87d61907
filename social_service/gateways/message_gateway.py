# social_service/gateways/message_gateway.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.gateways.interfaces import IMessageGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.data_mappers import MessageMapper, MessageReadMapper
from social_service.infrastructure.uow import UnitOfWork, UoWModel


class MessageGateway(IMessageGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.Message] = MessageMapper(session)
        uow.mappers[models.MessageRead] = MessageReadMapper(session)

    async def get_message(
        self, message_id: int, chat_id: Optional[int] = None
    ) -> Optional[UoWModel]:
        stmt = select(models.Message).filter(models.Message.id == message_id)
        if chat_id is not None:
            stmt = stmt.filter(models.Message.chat_id == chat_id)
        result = await self.session.execute(stmt)
        message = result.unique().scalar_one_or_none()
        return UoWModel(message, self.uow) if message else None

    async def create_message(
        self,
        message: schemas.SendMessage,
        sent_at: datetime,
        auto_delete_at: Optional[datetime],
    ) -> UoWModel:
        db_message = models.Message(
            chat_id=message.chat_id,
            sender_id=message.sender_id,
            content=message.content,
            message_type=message.message_type,
            media_url=message.media_url,
            media_name=message.media_name,
            sent_at=sent_at,
            auto_delete_at=auto_delete_at,
            read_by=[],
        )
        return self.uow.register_new(db_message)

    @staticmethod
    def _not_expired(now: datetime):
        return or_(
            models.Message.auto_delete_at.is_(None),
            models.Message.auto_delete_at > now,
        )

    async def get_chat_messages(self, chat_id: int, now: datetime) -> List[UoWModel]:
        stmt = (
            select(models.Message)
            .filter(models.Message.chat_id == chat_id, self._not_expired(now))
            .order_by(models.Message.sent_at.asc(), models.Message.id.asc())
        )
        result = await self.session.execute(stmt)
        return [UoWModel(message, self.uow) for message in result.unique().scalars()]

    async def get_messages_between(
        self, chat_id: int, start: datetime, end: datetime, now: datetime
    ) -> List[UoWModel]:
        stmt = (
            select(models.Message)
            .filter(
                models.Message.chat_id == chat_id,
                models.Message.sent_at >= start,
                models.Message.sent_at < end,
                self._not_expired(now),
            )
            .order_by(models.Message.sent_at.asc(), models.Message.id.asc())
        )
        result = await self.session.execute(stmt)
        return [UoWModel(message, self.uow) for message in result.unique().scalars()]

    async def upsert_read(
        self, message_id: int, user_id: int, read_at: datetime
    ) -> models.MessageRead:
        stmt = select(models.MessageRead).filter(
            models.MessageRead.message_id == message_id,
            models.MessageRead.user_id == user_id,
        )
        receipt = (await self.session.execute(stmt)).scalar_one_or_none()
        if receipt is None:
            receipt = models.MessageRead(
                message_id=message_id, user_id=user_id, read_at=read_at
            )
            self.uow.register_new(receipt)
        else:
            UoWModel(receipt, self.uow).read_at = read_at
        return receipt

    async def _delete_where(self, *criteria) -> int:
        ids = list(
            (await self.session.execute(select(models.Message.id).where(*criteria)))
            .scalars()
            .all()
        )
        if not ids:
            return 0
        await self.session.execute(
            delete(models.chat_pinned_messages).where(
                models.chat_pinned_messages.c.message_id.in_(ids)
            )
        )
        await self.session.execute(
            delete(models.MessageRead).where(models.MessageRead.message_id.in_(ids))
        )
        await self.session.execute(
            delete(models.Message).where(models.Message.id.in_(ids))
        )
        return len(ids)

    async def delete_expired(self, now: datetime) -> int:
        return await self._delete_where(
            models.Message.auto_delete_at.is_not(None),
            models.Message.auto_delete_at <= now,
        )

    async def delete_sent_before(self, sender_id: int, cutoff: datetime) -> int:
        return await self._delete_where(
            models.Message.sender_id == sender_id,
            models.Message.sent_at <= cutoff,
        )
