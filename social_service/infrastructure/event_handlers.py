# social_service/infrastructure/event_handlers.py
import json

from social_service.domain.events import MessageCreated, MessagePinned, MessageRead
from social_service.infrastructure.connection_manager import (
    ConnectionManager,
    chat_room,
)
from social_service.infrastructure.presence import PresenceTracker


class EventHandlers:
    """Publishes domain events to Redis for other processes."""

    def __init__(self, redis_client):
        self.redis_client = redis_client

    async def publish_message_created(self, event: MessageCreated):
        await self.redis_client.publish(
            f"chat:{event.chat_id}", json.dumps(event.payload, default=str)
        )

    async def publish_message_pinned(self, event: MessagePinned):
        pin_data = json.dumps(
            {
                "messageId": event.message_id,
                "action": event.action,
                "userId": event.user_id,
            }
        )
        await self.redis_client.publish(f"chat:{event.chat_id}:pins", pin_data)

    async def publish_message_read(self, event: MessageRead):
        read_data = json.dumps(
            {
                "messageId": event.message_id,
                "readBy": event.read_by,
                "readAt": event.read_at,
            },
            default=str,
        )
        await self.redis_client.publish(f"chat:{event.chat_id}:reads", read_data)


class SocketEventHandlers:
    """Delivers domain events to the WebSockets held by this process."""

    def __init__(self, connections: ConnectionManager, presence: PresenceTracker):
        self.connections = connections
        self.presence = presence

    async def deliver_message_created(self, event: MessageCreated):
        await self.connections.broadcast(
            chat_room(event.chat_id), "newMessage", event.payload
        )

    async def deliver_message_pinned(self, event: MessagePinned):
        await self.connections.broadcast(
            chat_room(event.chat_id),
            "messagePinned",
            {"messageId": event.message_id, "action": event.action},
        )

    async def deliver_message_read(self, event: MessageRead):
        connection_id = await self.presence.lookup(event.sender_id)
        if connection_id is None:
            return
        await self.connections.send(
            connection_id,
            "messageReadConfirmation",
            {
                "messageId": event.message_id,
                "readBy": event.read_by,
                "readAt": event.read_at.isoformat(),
            },
        )
