# social_service/gateways/interfaces.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from social_service.domain.ledger import EventCounts
from social_service.infrastructure import models, schemas
from social_service.infrastructure.security import SecurityService
from social_service.infrastructure.uow import UoWModel


class IUserGateway(ABC):
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_all(
        self, skip: int = 0, limit: int = 100, username: Optional[str] = None
    ) -> List[UoWModel]:
        pass

    @abstractmethod
    async def get_many(self, user_ids: list[int]) -> List[UoWModel]:
        pass

    @abstractmethod
    async def create_user(
        self, user: schemas.UserCreate, security_service: SecurityService
    ) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def update_user(
        self,
        user: UoWModel,
        user_update: schemas.UserUpdate,
        security_service: SecurityService,
    ) -> UoWModel:
        pass

    @abstractmethod
    async def delete_user(self, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def search_users(self, query: str, current_user_id: int) -> List[UoWModel]:
        pass

    @abstractmethod
    async def verify_password(
        self, user: UoWModel, password: str, security_service: SecurityService
    ) -> bool:
        pass

    @abstractmethod
    async def set_presence(
        self, user_id: int, is_online: bool, last_seen: datetime
    ) -> None:
        pass

    @abstractmethod
    async def touch_last_seen(self, user_id: int, last_seen: datetime) -> None:
        pass

    @abstractmethod
    async def get_blockers_of(self, sender_id: int, user_ids: list[int]) -> list[int]:
        pass

    @abstractmethod
    async def get_restricted_ids(self, user_id: int) -> set[int]:
        pass

    @abstractmethod
    async def set_blocked(self, user_id: int, target_id: int, blocked: bool) -> bool:
        pass

    @abstractmethod
    async def set_restricted(
        self, user_id: int, target_id: int, restricted: bool
    ) -> bool:
        pass

    @abstractmethod
    async def list_blocked(self, user_id: int) -> List[UoWModel]:
        pass

    @abstractmethod
    async def list_restricted(self, user_id: int) -> List[UoWModel]:
        pass

    @abstractmethod
    async def get_auto_delete_users(self) -> list[tuple[int, str]]:
        pass


class ITokenGateway(ABC):
    @abstractmethod
    async def create_token(self, token: schemas.TokenCreate) -> UoWModel:
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_by_access_token(self, access_token: str) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def get_by_refresh_token(self, refresh_token: str) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def delete_token_by_access_token(self, access_token: str) -> bool:
        pass

    @abstractmethod
    async def delete_token_by_refresh_token(self, refresh_token: str) -> bool:
        pass


class IChatGateway(ABC):
    @abstractmethod
    async def get_chat(self, chat_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def find_private_chat(
        self, user_id1: int, user_id2: int
    ) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def create_private_chat(
        self, user_id1: int, user_id2: int
    ) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def create_group(
        self, admin_id: int, group: schemas.GroupCreate
    ) -> UoWModel:
        pass

    @abstractmethod
    async def get_groups_for_user(self, user_id: int) -> List[UoWModel]:
        pass

    @abstractmethod
    async def add_member(self, chat: UoWModel, user_id: int) -> bool:
        pass

    @abstractmethod
    async def remove_member(self, chat: UoWModel, user_id: int) -> bool:
        pass

    @abstractmethod
    async def touch_activity(self, chat_id: int, at: datetime) -> None:
        pass

    @abstractmethod
    async def set_pinned(self, chat_id: int, message_id: int, pinned: bool) -> None:
        pass

    @abstractmethod
    async def refresh(self, chat: UoWModel) -> UoWModel:
        pass


class IMessageGateway(ABC):
    @abstractmethod
    async def get_message(
        self, message_id: int, chat_id: Optional[int] = None
    ) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def create_message(
        self,
        message: schemas.SendMessage,
        sent_at: datetime,
        auto_delete_at: Optional[datetime],
    ) -> UoWModel:
        pass

    @abstractmethod
    async def get_chat_messages(self, chat_id: int, now: datetime) -> List[UoWModel]:
        pass

    @abstractmethod
    async def get_messages_between(
        self, chat_id: int, start: datetime, end: datetime, now: datetime
    ) -> List[UoWModel]:
        pass

    @abstractmethod
    async def upsert_read(
        self, message_id: int, user_id: int, read_at: datetime
    ) -> models.MessageRead:
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        pass

    @abstractmethod
    async def delete_sent_before(self, sender_id: int, cutoff: datetime) -> int:
        pass


class IAdGateway(ABC):
    @abstractmethod
    async def get_ad(self, ad_id: int) -> Optional[UoWModel]:
        pass

    @abstractmethod
    async def create_ad(
        self, owner_id: int, ad: schemas.AdCreate, wallet
    ) -> UoWModel:
        pass

    @abstractmethod
    async def record_events(
        self,
        ad_id: int,
        counts: EventCounts,
        actor_id: Optional[int] = None,
        reaction: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> int:
        pass

    @abstractmethod
    async def record_form_submission(
        self, ad_id: int, user_id: Optional[int], form_data: dict
    ) -> UoWModel:
        pass

    @abstractmethod
    async def reaction_counts(self, ad_id: int) -> dict[str, int]:
        pass

    @abstractmethod
    async def recent_engagements(
        self, ad_id: int, limit: int
    ) -> List[models.AdEvent]:
        pass
