# social_service/interactors/chat_interactor.py
import logging
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy.exc import IntegrityError

from social_service.domain.errors import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from social_service.domain.policies import auto_delete_window
from social_service.gateways.interfaces import (
    IChatGateway,
    IMessageGateway,
    IUserGateway,
)
from social_service.infrastructure import schemas
from social_service.infrastructure.models import utcnow
from social_service.infrastructure.uow import UnitOfWork, UoWModel


def date_window(year: int, month: int, day: int | None = None) -> tuple[datetime, datetime]:
    """Half-open UTC range covering a whole month, or a single day of it."""
    try:
        if day is None:
            start = datetime(year, month, 1, tzinfo=timezone.utc)
            end = (
                datetime(year + 1, 1, 1, tzinfo=timezone.utc)
                if month == 12
                else datetime(year, month + 1, 1, tzinfo=timezone.utc)
            )
        else:
            start = datetime(year, month, day, tzinfo=timezone.utc)
            end = start + timedelta(days=1)
    except ValueError as e:
        raise ValidationError(f"Invalid date: {e!s}") from None
    return start, end


class ChatInteractor:
    def __init__(
        self,
        uow: UnitOfWork,
        chat_gateway: IChatGateway,
        message_gateway: IMessageGateway,
        user_gateway: IUserGateway,
        logger: logging.Logger,
    ):
        self.uow = uow
        self.chat_gateway = chat_gateway
        self.message_gateway = message_gateway
        self.user_gateway = user_gateway
        self.logger = logger

    async def _get_chat(self, chat_id: int) -> UoWModel:
        chat = await self.chat_gateway.get_chat(chat_id)
        if chat is None:
            raise NotFoundError("Chat not found")
        return chat

    async def _get_member_chat(self, chat_id: int, user_id: int) -> UoWModel:
        chat = await self._get_chat(chat_id)
        if user_id not in chat.participant_ids:
            raise AuthorizationError("You are not a participant of this chat")
        return chat

    async def _get_admin_group(self, group_id: int, user_id: int, what: str) -> UoWModel:
        group = await self._get_chat(group_id)
        if not group.is_group:
            raise NotFoundError("Group not found")
        if group.admin_id != user_id:
            raise AuthorizationError(f"Only admin can {what}")
        return group

    # private chats and messages

    async def create_private_chat(
        self, user_id1: int, user_id2: int
    ) -> schemas.PrivateChatResponse:
        if user_id1 == user_id2:
            raise ValidationError("Cannot start a chat with yourself")
        existing = await self.chat_gateway.find_private_chat(user_id1, user_id2)
        if existing:
            return schemas.PrivateChatResponse(
                message="Chat already exists.", chat_id=existing.id, created=False
            )

        chat = await self.chat_gateway.create_private_chat(user_id1, user_id2)
        if chat is None:
            raise NotFoundError("One or both users not found.")
        try:
            await self.uow.commit()
        except IntegrityError:
            # lost the race against a concurrent create for the same pair
            await self.uow.rollback()
            existing = await self.chat_gateway.find_private_chat(user_id1, user_id2)
            if existing is None:
                raise
            return schemas.PrivateChatResponse(
                message="Chat already exists.", chat_id=existing.id, created=False
            )
        return schemas.PrivateChatResponse(
            message="New private chat created.", chat_id=chat.id, created=True
        )

    async def get_chat(self, chat_id: int, user_id: int) -> schemas.Chat:
        chat = await self._get_member_chat(chat_id, user_id)
        return schemas.Chat.model_validate(chat._model)

    async def get_chat_messages(
        self, chat_id: int, user_id: int
    ) -> List[schemas.Message]:
        await self._get_member_chat(chat_id, user_id)
        messages = await self.message_gateway.get_chat_messages(chat_id, utcnow())
        return [schemas.Message.model_validate(m._model) for m in messages]

    async def filter_messages(
        self, chat_id: int, user_id: int, year: int, month: int, day: int | None = None
    ) -> List[schemas.Message]:
        await self._get_member_chat(chat_id, user_id)
        start, end = date_window(year, month, day)
        messages = await self.message_gateway.get_messages_between(
            chat_id, start, end, utcnow()
        )
        return [schemas.Message.model_validate(m._model) for m in messages]

    # auto-delete

    async def set_auto_delete(
        self, chat_id: int, user_id: int, policy: str
    ) -> schemas.AutoDeleteSetting:
        auto_delete_window(policy)
        chat = await self._get_member_chat(chat_id, user_id)
        if chat.is_group and chat.admin_id != user_id:
            raise AuthorizationError("Only admin can change the auto-delete setting")
        chat.auto_delete_time = policy
        await self.uow.commit()
        self.logger.info(f"Chat {chat_id} auto-delete set to {policy}")
        return schemas.AutoDeleteSetting(chat_id=chat_id, auto_delete_time=policy)

    async def get_auto_delete(
        self, chat_id: int, user_id: int
    ) -> schemas.AutoDeleteSetting:
        chat = await self._get_member_chat(chat_id, user_id)
        return schemas.AutoDeleteSetting(
            chat_id=chat_id, auto_delete_time=chat.auto_delete_time
        )

    # blocks and restrictions

    async def _check_target(self, user_id: int, target_id: int) -> None:
        if user_id == target_id:
            raise ValidationError("You cannot target yourself")
        if await self.user_gateway.get_user(target_id) is None:
            raise NotFoundError("User not found")

    async def update_block(
        self, user_id: int, target_id: int, action: str
    ) -> schemas.StatusMessage:
        await self._check_target(user_id, target_id)
        await self.user_gateway.set_blocked(user_id, target_id, action == "block")
        await self.uow.commit()
        return schemas.StatusMessage(message=f"User {action}ed successfully")

    async def update_restriction(
        self, user_id: int, target_id: int, action: str
    ) -> schemas.StatusMessage:
        await self._check_target(user_id, target_id)
        await self.user_gateway.set_restricted(
            user_id, target_id, action == "restrict"
        )
        await self.uow.commit()
        return schemas.StatusMessage(message=f"User {action}ed successfully")

    async def list_blocked(self, user_id: int) -> schemas.RelationList:
        users = await self.user_gateway.list_blocked(user_id)
        return schemas.RelationList(
            users=[schemas.UserBasic.model_validate(u._model) for u in users]
        )

    async def list_restricted(self, user_id: int) -> schemas.RelationList:
        users = await self.user_gateway.list_restricted(user_id)
        return schemas.RelationList(
            users=[schemas.UserBasic.model_validate(u._model) for u in users]
        )

    # groups

    async def create_group(
        self, admin_id: int, group: schemas.GroupCreate
    ) -> schemas.Chat:
        if not group.group_name.strip():
            raise ValidationError("Group name is required")
        chat = await self.chat_gateway.create_group(admin_id, group)
        await self.uow.commit()
        await self.chat_gateway.refresh(chat)
        self.logger.info(f"Group {chat.id} created by user {admin_id}")
        return schemas.Chat.model_validate(chat._model)

    async def add_member(
        self, group_id: int, member_id: int, user_id: int
    ) -> schemas.StatusMessage:
        group = await self._get_admin_group(group_id, user_id, "add members")
        if await self.user_gateway.get_user(member_id) is None:
            raise NotFoundError("User not found")
        await self.chat_gateway.add_member(group, member_id)
        await self.uow.commit()
        return schemas.StatusMessage(message="Member added successfully")

    async def remove_member(
        self, group_id: int, member_id: int, user_id: int
    ) -> schemas.StatusMessage:
        group = await self._get_admin_group(group_id, user_id, "remove members")
        if member_id == user_id:
            raise ValidationError("Admin cannot remove themselves, use exit instead")
        await self.chat_gateway.remove_member(group, member_id)
        await self.uow.commit()
        return schemas.StatusMessage(message="Member removed successfully")

    async def update_group_profile(
        self, update: schemas.GroupProfileUpdate, user_id: int
    ) -> schemas.Chat:
        group = await self._get_admin_group(update.group_id, user_id, "update group")
        for field, value in update.model_dump(
            exclude_unset=True, exclude={"group_id"}
        ).items():
            setattr(group, field, value)
        await self.uow.commit()
        await self.chat_gateway.refresh(group)
        return schemas.Chat.model_validate(group._model)

    async def my_groups(self, user_id: int) -> List[schemas.Chat]:
        groups = await self.chat_gateway.get_groups_for_user(user_id)
        return [schemas.Chat.model_validate(group._model) for group in groups]

    async def exit_group(self, group_id: int, user_id: int) -> schemas.StatusMessage:
        group = await self._get_member_chat(group_id, user_id)
        if not group.is_group:
            raise NotFoundError("Group not found")
        await self.chat_gateway.remove_member(group, user_id)
        if group.admin_id == user_id:
            # admin role passes to the longest-registered remaining member
            remaining = sorted(group.participant_ids)
            group.admin_id = remaining[0] if remaining else None
        await self.uow.commit()
        return schemas.StatusMessage(message="Exited group successfully")
