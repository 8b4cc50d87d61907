# social_service/interactors/room_interactor.py
import logging

from social_service.domain.errors import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from social_service.domain.events import MessagePinned, MessageRead
from social_service.gateways.interfaces import (
    IChatGateway,
    IMessageGateway,
    IUserGateway,
)
from social_service.infrastructure.connection_manager import (
    ConnectionManager,
    chat_room,
)
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.models import utcnow
from social_service.infrastructure.presence import PresenceTracker
from social_service.infrastructure.uow import UnitOfWork

PIN_ACTIONS = ("pin", "unpin")


class RoomInteractor:
    def __init__(
        self,
        uow: UnitOfWork,
        chat_gateway: IChatGateway,
        message_gateway: IMessageGateway,
        user_gateway: IUserGateway,
        event_dispatcher: EventDispatcher,
        connections: ConnectionManager,
        presence: PresenceTracker,
        logger: logging.Logger,
    ):
        self.uow = uow
        self.chat_gateway = chat_gateway
        self.message_gateway = message_gateway
        self.user_gateway = user_gateway
        self.event_dispatcher = event_dispatcher
        self.connections = connections
        self.presence = presence
        self.logger = logger

    async def join_room(self, connection_id: str, user_id: int, chat_id: int) -> None:
        if await self.chat_gateway.get_chat(chat_id) is None:
            raise NotFoundError("Chat not found")
        await self.connections.join(connection_id, chat_room(chat_id))
        await self.user_gateway.touch_last_seen(user_id, utcnow())
        await self.uow.commit()

    async def leave_room(self, connection_id: str, chat_id: int) -> None:
        await self.connections.leave(connection_id, chat_room(chat_id))

    async def set_pin(
        self, chat_id: int, message_id: int, user_id: int, action: str
    ) -> None:
        if action not in PIN_ACTIONS:
            raise ValidationError(f"Unknown pin action: {action}")
        chat = await self.chat_gateway.get_chat(chat_id)
        if chat is None:
            raise NotFoundError("Chat not found")
        if not chat.is_group or chat.admin_id != user_id:
            raise AuthorizationError("Only group admin can pin messages")
        message = await self.message_gateway.get_message(message_id, chat_id=chat_id)
        if message is None:
            raise NotFoundError("Message not found")

        pinned = action == "pin"
        await self.chat_gateway.set_pinned(chat_id, message_id, pinned)
        message.is_pinned = pinned
        await self.uow.commit()
        self.logger.info(f"Message {message_id} {action}ned in chat {chat_id}")

        await self.event_dispatcher.dispatch(
            MessagePinned(
                chat_id=chat_id, message_id=message_id, action=action, user_id=user_id
            )
        )

    async def mark_read(self, message_id: int, reader_id: int) -> MessageRead:
        message = await self.message_gateway.get_message(message_id)
        if message is None:
            raise NotFoundError("Message not found")
        receipt = await self.message_gateway.upsert_read(message_id, reader_id, utcnow())
        read_at = receipt.read_at
        await self.uow.commit()

        event = MessageRead(
            chat_id=message.chat_id,
            message_id=message_id,
            sender_id=message.sender_id,
            read_by=reader_id,
            read_at=read_at,
        )
        await self.event_dispatcher.dispatch(event)
        return event

    async def typing(self, user_id: int, receiver_id: int, is_typing: bool) -> bool:
        connection_id = await self.presence.lookup(receiver_id)
        if connection_id is None:
            return False
        return await self.connections.send(
            connection_id, "userTyping", {"userId": user_id, "isTyping": is_typing}
        )

    async def group_typing(
        self, connection_id: str, user_id: int, group_id: int, is_typing: bool
    ) -> int:
        return await self.connections.broadcast(
            chat_room(group_id),
            "groupUserTyping",
            {"userId": user_id, "groupId": group_id, "isTyping": is_typing},
            exclude=connection_id,
        )
