# social_service/infrastructure/redis_client.py
import logging

import redis.asyncio as redis


class RedisClient:
    def __init__(self, host: str, port: int, logger: logging.Logger):
        self.host = host
        self.port = port
        self.client: redis.Redis | None = None
        self.logger = logger

    async def connect(self):
        self.client = redis.Redis(
            host=self.host,
            port=self.port,
            db=0,
            decode_responses=True,
        )
        try:
            await self.client.ping()
            self.logger.info(
                f"Successfully connected to Redis at {self.host}:{self.port}"
            )
        except redis.ConnectionError as e:
            self.logger.error(f"Failed to connect to Redis: {e!s}")
            raise e

    async def disconnect(self):
        if self.client:
            await self.client.aclose()
            self.client = None
            self.logger.info("Disconnected from Redis")

    def _require(self) -> redis.Redis:
        if self.client is None:
            raise RuntimeError("Redis client not connected")
        return self.client

    async def publish(self, channel: str, message: str) -> None:
        await self._require().publish(channel, message)
        self.logger.debug(f"Published message to channel {channel}")

    # hash helpers backing the shared presence map

    async def hset(self, key: str, field: str, value: str) -> None:
        await self._require().hset(key, field, value)

    async def hget(self, key: str, field: str) -> str | None:
        return await self._require().hget(key, field)

    async def hdel(self, key: str, field: str) -> int:
        return await self._require().hdel(key, field)

    async def hdel_if_equals(self, key: str, field: str, expected: str) -> bool:
        """Delete ``field`` only while it still holds ``expected``."""
        client = self._require()
        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    current = await pipe.hget(key, field)
                    if current != expected:
                        await pipe.unwatch()
                        return False
                    pipe.multi()
                    pipe.hdel(key, field)
                    await pipe.execute()
                    return True
                except redis.WatchError:
                    continue

    async def hkeys(self, key: str) -> list[str]:
        return await self._require().hkeys(key)
