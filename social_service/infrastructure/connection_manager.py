# social_service/infrastructure/connection_manager.py
"""
In-process registry of open WebSockets: per-connection sends, room broadcasts
and process-wide broadcasts. Frames are JSON objects ``{"event", "data"}``.
"""
import asyncio
import json
import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import WebSocket


def chat_room(chat_id: int) -> str:
    return f"chat:{chat_id}"


class ConnectionManager:
    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger
        self._connections: dict[str, WebSocket] = {}
        self._rooms: dict[str, set[str]] = {}
        self._memberships: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()
        self._drop_listeners: list[Callable[[str], Awaitable[None]]] = []

    def add_drop_listener(self, listener: Callable[[str], Awaitable[None]]) -> None:
        """Called with the connection id whenever a failed send drops a socket."""
        self._drop_listeners.append(listener)

    async def connect(self, websocket: WebSocket) -> str:
        connection_id = uuid.uuid4().hex
        async with self._lock:
            self._connections[connection_id] = websocket
            self._memberships[connection_id] = set()
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        async with self._lock:
            self._connections.pop(connection_id, None)
            for room in self._memberships.pop(connection_id, set()):
                self._discard(room, connection_id)

    def _discard(self, room: str, connection_id: str) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room]

    async def join(self, connection_id: str, room: str) -> None:
        async with self._lock:
            if connection_id not in self._connections:
                return
            self._rooms.setdefault(room, set()).add(connection_id)
            self._memberships[connection_id].add(room)
        self.logger.debug(f"Connection {connection_id} joined {room}")

    async def leave(self, connection_id: str, room: str) -> None:
        async with self._lock:
            self._discard(room, connection_id)
            self._memberships.get(connection_id, set()).discard(room)
        self.logger.debug(f"Connection {connection_id} left {room}")

    def is_connected(self, connection_id: str | None) -> bool:
        return connection_id is not None and connection_id in self._connections

    def rooms_of(self, connection_id: str) -> frozenset[str]:
        return frozenset(self._memberships.get(connection_id, ()))

    def members_of(self, room: str) -> frozenset[str]:
        return frozenset(self._rooms.get(room, ()))

    @staticmethod
    def encode(event: str, data: Any) -> str:
        return json.dumps({"event": event, "data": data}, default=str)

    async def send(self, connection_id: str, event: str, data: Any) -> bool:
        websocket = self._connections.get(connection_id)
        if websocket is None:
            return False
        try:
            await websocket.send_text(self.encode(event, data))
        except Exception as e:
            self.logger.warning(f"Send to {connection_id} failed: {e!s}")
            await self.disconnect(connection_id)
            for listener in self._drop_listeners:
                await listener(connection_id)
            return False
        return True

    async def _send_many(
        self, connection_ids, event: str, data: Any, exclude: str | None
    ) -> int:
        sent = 0
        for connection_id in connection_ids:
            if connection_id == exclude:
                continue
            if await self.send(connection_id, event, data):
                sent += 1
        return sent

    async def broadcast(
        self, room: str, event: str, data: Any, exclude: str | None = None
    ) -> int:
        async with self._lock:
            members = set(self._rooms.get(room, ()))
        return await self._send_many(members, event, data, exclude)

    async def broadcast_all(
        self, event: str, data: Any, exclude: str | None = None
    ) -> int:
        async with self._lock:
            connection_ids = set(self._connections)
        return await self._send_many(connection_ids, event, data, exclude)
