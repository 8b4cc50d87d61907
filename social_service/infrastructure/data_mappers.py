# social_service/infrastructure/data_mappers.py

from typing import Protocol, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from social_service.infrastructure import models

ModelT_contra = TypeVar("ModelT_contra", contravariant=True)


class DataMapper(Protocol[ModelT_contra]):
    async def insert(self, model: ModelT_contra):
        raise NotImplementedError

    async def delete(self, model: ModelT_contra):
        raise NotImplementedError

    async def update(self, model: ModelT_contra):
        raise NotImplementedError


class SessionMapper:
    """Writes models through an AsyncSession, flushing so ids and version checks surface early."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, model):
        self.session.add(model)
        await self.session.flush()

    async def delete(self, model):
        await self.session.delete(model)
        await self.session.flush()

    async def update(self, model):
        await self.session.merge(model)
        await self.session.flush()


class UserMapper(SessionMapper, DataMapper[models.User]):
    pass


class TokenMapper(SessionMapper, DataMapper[models.Token]):
    pass


class ChatMapper(SessionMapper, DataMapper[models.Chat]):
    pass


class MessageMapper(SessionMapper, DataMapper[models.Message]):
    pass


class MessageReadMapper(SessionMapper, DataMapper[models.MessageRead]):
    pass


class BusinessProfileMapper(SessionMapper, DataMapper[models.BusinessProfile]):
    pass


class AdvertisementMapper(SessionMapper, DataMapper[models.Advertisement]):
    pass


class AdEventMapper(SessionMapper, DataMapper[models.AdEvent]):
    pass


class AdFormSubmissionMapper(SessionMapper, DataMapper[models.AdFormSubmission]):
    pass
