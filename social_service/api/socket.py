# social_service/api/socket.py
"""
Realtime socket: one WebSocket per client, JSON frames ``{"event", "data"}``.

Every inbound event runs in its own database session and is handled to
completion before the next frame of the same connection is read. Handlers
return ``Ok`` or ``Failure``; failures go back to the client on
``messageError`` (sendMessage) or ``error`` (everything else).
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import pydantic
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.domain.errors import (
    AuthorizationError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from social_service.domain.results import Failure, HandlerResult, Ok
from social_service.gateways.chat_gateway import ChatGateway
from social_service.gateways.message_gateway import MessageGateway
from social_service.gateways.user_gateway import UserGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.connection_manager import ConnectionManager
from social_service.infrastructure.database import Database
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.presence import PresenceTracker
from social_service.infrastructure.push import PushNotifier
from social_service.infrastructure.uow import UnitOfWork
from social_service.interactors.delivery_interactor import DeliveryInteractor
from social_service.interactors.room_interactor import RoomInteractor

router = APIRouter()


@dataclass
class SocketSession:
    connection_id: str
    user_id: int | None = None


def parse_id(data: Any, key: str, label: str) -> int:
    """Ids arrive bare (`"join", 7`) or wrapped (`"join", {"userId": 7}`)."""
    if isinstance(data, dict):
        data = data.get(key)
    if data is None or isinstance(data, bool):
        raise ValidationError(f"Invalid {label}")
    try:
        return int(data)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}") from None


class ChatSocketHandler:
    def __init__(
        self,
        database: Database,
        connections: ConnectionManager,
        presence: PresenceTracker,
        event_dispatcher: EventDispatcher,
        push_notifier: PushNotifier,
        logger: logging.Logger,
    ):
        self.database = database
        self.connections = connections
        self.presence = presence
        self.event_dispatcher = event_dispatcher
        self.push_notifier = push_notifier
        self.logger = logger
        self.handlers: dict[
            str, Callable[[SocketSession, Any], Awaitable[HandlerResult]]
        ] = {
            "join": self.on_join,
            "joinChat": self.on_join_chat,
            "sendMessage": self.on_send_message,
            "typing": self.on_typing,
            "groupTyping": self.on_group_typing,
            "pinMessage": self.on_pin_message,
            "messageRead": self.on_message_read,
            "leaveChat": self.on_leave_chat,
        }

    def _room_interactor(self, session: AsyncSession) -> RoomInteractor:
        uow = UnitOfWork(session)
        return RoomInteractor(
            uow,
            ChatGateway(session, uow),
            MessageGateway(session, uow),
            UserGateway(session, uow),
            self.event_dispatcher,
            self.connections,
            self.presence,
            self.logger,
        )

    def _delivery_interactor(self, session: AsyncSession) -> DeliveryInteractor:
        uow = UnitOfWork(session)
        return DeliveryInteractor(
            uow,
            ChatGateway(session, uow),
            MessageGateway(session, uow),
            UserGateway(session, uow),
            self.event_dispatcher,
            self.presence,
            self.push_notifier,
            self.logger,
        )

    @staticmethod
    def _acting_user(session: SocketSession, claimed: int | None) -> int:
        if session.user_id is not None and claimed not in (None, session.user_id):
            raise AuthorizationError("User does not match this connection")
        user_id = claimed if claimed is not None else session.user_id
        if user_id is None:
            raise AuthorizationError("Join before sending this event")
        return user_id

    # event handlers

    async def on_join(self, session: SocketSession, data: Any) -> HandlerResult:
        user_id = parse_id(data, "userId", "user id")
        async with self.database.session() as db:
            uow = UnitOfWork(db)
            if await UserGateway(db, uow).get_user(user_id) is None:
                raise NotFoundError("User not found")

        if session.user_id is not None and session.user_id != user_id:
            await self.presence.unregister(session.user_id, session.connection_id)
        session.user_id = user_id
        await self.presence.register(user_id, session.connection_id)

        online = sorted(await self.presence.list_online())
        await self.connections.send(
            session.connection_id, "onlineUsers", [str(uid) for uid in online]
        )
        return Ok(online)

    async def on_join_chat(self, session: SocketSession, data: Any) -> HandlerResult:
        chat_id = parse_id(data, "chatId", "chat id")
        claimed = None
        if isinstance(data, dict) and data.get("userId") is not None:
            claimed = parse_id(data, "userId", "user id")
        user_id = self._acting_user(session, claimed)
        async with self.database.session() as db:
            await self._room_interactor(db).join_room(
                session.connection_id, user_id, chat_id
            )
        return Ok(chat_id)

    async def on_send_message(self, session: SocketSession, data: Any) -> HandlerResult:
        message = schemas.SendMessage.model_validate(data)
        self._acting_user(session, message.sender_id)
        async with self.database.session() as db:
            sent = await self._delivery_interactor(db).send_message(message)
        return Ok(sent)

    async def on_typing(self, session: SocketSession, data: Any) -> HandlerResult:
        payload = schemas.TypingPayload.model_validate(data)
        user_id = self._acting_user(session, None)
        async with self.database.session() as db:
            delivered = await self._room_interactor(db).typing(
                user_id, payload.receiver_id, payload.is_typing
            )
        return Ok(delivered)

    async def on_group_typing(self, session: SocketSession, data: Any) -> HandlerResult:
        payload = schemas.GroupTypingPayload.model_validate(data)
        user_id = self._acting_user(session, payload.user_id)
        async with self.database.session() as db:
            count = await self._room_interactor(db).group_typing(
                session.connection_id, user_id, payload.group_id, payload.is_typing
            )
        return Ok(count)

    async def on_pin_message(self, session: SocketSession, data: Any) -> HandlerResult:
        payload = schemas.PinPayload.model_validate(data)
        user_id = self._acting_user(session, payload.user_id)
        async with self.database.session() as db:
            await self._room_interactor(db).set_pin(
                payload.chat_id, payload.message_id, user_id, payload.action
            )
        return Ok(payload.message_id)

    async def on_message_read(self, session: SocketSession, data: Any) -> HandlerResult:
        payload = schemas.ReadPayload.model_validate(data)
        reader_id = self._acting_user(session, None)
        async with self.database.session() as db:
            event = await self._room_interactor(db).mark_read(
                payload.message_id, reader_id
            )
        return Ok(event)

    async def on_leave_chat(self, session: SocketSession, data: Any) -> HandlerResult:
        chat_id = parse_id(data, "chatId", "chat id")
        async with self.database.session() as db:
            await self._room_interactor(db).leave_room(session.connection_id, chat_id)
        return Ok(chat_id)

    # dispatch

    async def handle(
        self, session: SocketSession, event: str, data: Any
    ) -> HandlerResult:
        handler = self.handlers.get(event)
        if handler is None:
            return Failure(event, ValidationError(f"Unknown event: {event}"))
        try:
            return await handler(session, data)
        except DomainError as e:
            return Failure(event, e)
        except pydantic.ValidationError as e:
            return Failure(event, ValidationError(f"Invalid payload: {e.errors()[0]['msg']}"))
        except Exception as e:
            self.logger.exception(f"Error handling {event}: {e!s}")
            return Failure(event, DomainError("Internal server error"))

    async def handle_frame(self, session: SocketSession, raw: str) -> HandlerResult:
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            result = Failure("", ValidationError("Frames must be valid JSON"))
        else:
            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                result = Failure("", ValidationError("Frames need an event name"))
            else:
                result = await self.handle(session, frame["event"], frame.get("data"))

        if isinstance(result, Failure):
            channel, payload = result.to_wire()
            await self.connections.send(session.connection_id, channel, payload)
        return result

    async def on_disconnect(self, session: SocketSession) -> None:
        if session.user_id is not None:
            await self.presence.unregister(session.user_id, session.connection_id)
        await self.connections.disconnect(session.connection_id)
        self.logger.info(f"Connection {session.connection_id} closed")

    async def serve(self, websocket: WebSocket) -> None:
        await websocket.accept()
        session = SocketSession(await self.connections.connect(websocket))
        self.logger.info(f"Connection {session.connection_id} opened")
        try:
            while True:
                raw = await websocket.receive_text()
                await self.handle_frame(session, raw)
        except WebSocketDisconnect:
            pass
        finally:
            await self.on_disconnect(session)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.app.state.socket_handler.serve(websocket)
