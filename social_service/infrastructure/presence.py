# social_service/infrastructure/presence.py
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Protocol

from social_service.infrastructure.models import utcnow
from social_service.infrastructure.redis_client import RedisClient

StatusWriter = Callable[[int, bool, datetime], Awaitable[None]]


class PresenceStore(Protocol):
    async def put(self, user_id: int, connection_id: str) -> None: ...

    async def fetch(self, user_id: int) -> str | None: ...

    async def remove(self, user_id: int, connection_id: str | None = None) -> bool: ...

    async def user_ids(self) -> set[int]: ...


class InMemoryPresenceStore:
    def __init__(self) -> None:
        self._connections: dict[int, str] = {}

    async def put(self, user_id: int, connection_id: str) -> None:
        self._connections[user_id] = connection_id

    async def fetch(self, user_id: int) -> str | None:
        return self._connections.get(user_id)

    async def remove(self, user_id: int, connection_id: str | None = None) -> bool:
        current = self._connections.get(user_id)
        if current is None:
            return False
        if connection_id is not None and current != connection_id:
            return False
        del self._connections[user_id]
        return True

    async def user_ids(self) -> set[int]:
        return set(self._connections)


class RedisPresenceStore:
    """Presence map in a Redis hash, shared by every worker process."""

    def __init__(self, redis_client: RedisClient, key: str = "presence:connections"):
        self.redis_client = redis_client
        self.key = key

    async def put(self, user_id: int, connection_id: str) -> None:
        await self.redis_client.hset(self.key, str(user_id), connection_id)

    async def fetch(self, user_id: int) -> str | None:
        return await self.redis_client.hget(self.key, str(user_id))

    async def remove(self, user_id: int, connection_id: str | None = None) -> bool:
        if connection_id is None:
            return bool(await self.redis_client.hdel(self.key, str(user_id)))
        return await self.redis_client.hdel_if_equals(
            self.key, str(user_id), connection_id
        )

    async def user_ids(self) -> set[int]:
        return {int(user_id) for user_id in await self.redis_client.hkeys(self.key)}


class Broadcaster(Protocol):
    async def broadcast_all(self, event: str, data, exclude: str | None = None) -> int: ...


class PresenceTracker:
    """Maps user ids to their live connection, last writer wins.

    Every transition is persisted through ``status_writer`` and announced to
    all other connections as ``userOnline`` / ``userOffline``.
    """

    def __init__(
        self,
        store: PresenceStore,
        status_writer: StatusWriter,
        broadcaster: Broadcaster,
        logger: logging.Logger,
    ):
        self.store = store
        self.status_writer = status_writer
        self.broadcaster = broadcaster
        self.logger = logger
        # connections registered by this process
        self._owners: dict[str, int] = {}

    async def _write_status(self, user_id: int, is_online: bool) -> None:
        try:
            await self.status_writer(user_id, is_online, utcnow())
        except Exception as e:
            self.logger.error(f"Failed to store presence for user {user_id}: {e!s}")

    async def register(self, user_id: int, connection_id: str) -> None:
        await self.store.put(user_id, connection_id)
        self._owners = {
            cid: uid for cid, uid in self._owners.items() if uid != user_id
        }
        self._owners[connection_id] = user_id
        await self._write_status(user_id, True)
        await self.broadcaster.broadcast_all(
            "userOnline", str(user_id), exclude=connection_id
        )
        self.logger.info(f"User {user_id} online on {connection_id}")

    async def unregister(self, user_id: int, connection_id: str | None = None) -> bool:
        """Drop the mapping; a connection already replaced by a newer one is a no-op."""
        for cid, uid in list(self._owners.items()):
            if uid == user_id and connection_id in (None, cid):
                del self._owners[cid]
        if not await self.store.remove(user_id, connection_id):
            return False
        await self._write_status(user_id, False)
        await self.broadcaster.broadcast_all(
            "userOffline", str(user_id), exclude=connection_id
        )
        self.logger.info(f"User {user_id} offline")
        return True

    async def connection_dropped(self, connection_id: str) -> None:
        user_id = self._owners.pop(connection_id, None)
        if user_id is not None:
            await self.unregister(user_id, connection_id)

    async def list_online(self) -> frozenset[int]:
        return frozenset(await self.store.user_ids())

    async def lookup(self, user_id: int) -> str | None:
        return await self.store.fetch(user_id)
