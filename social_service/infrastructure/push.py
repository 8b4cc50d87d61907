# social_service/infrastructure/push.py
"""
Push notification senders. ``FcmPushNotifier`` posts to the FCM legacy HTTP
endpoint; ``LoggingPushNotifier`` only logs and is used when no server key
is configured.
"""
import logging
from typing import Any, Protocol

import httpx


class PushError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class PushNotifier(Protocol):
    async def send(
        self, token: str, title: str, body: str, data: dict[str, Any] | None = None
    ) -> None: ...


class FcmPushNotifier:
    def __init__(
        self,
        endpoint: str,
        server_key: str,
        logger: logging.Logger,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self.server_key = server_key
        self.logger = logger
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"key={self.server_key}",
            "Content-Type": "application/json",
        }

    async def send(
        self, token: str, title: str, body: str, data: dict[str, Any] | None = None
    ) -> None:
        payload = {
            "to": token,
            "notification": {"title": title, "body": body},
            "data": {key: str(value) for key, value in (data or {}).items()},
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(
                    self.endpoint, headers=self._headers(), json=payload
                )
        except httpx.RequestError as e:
            raise PushError(f"Push request failed: {e!s}") from e

        if response.status_code >= 400:
            raise PushError(
                f"Push rejected: {response.status_code}",
                status_code=response.status_code,
            )
        self.logger.debug(f"Push delivered to token ending {token[-6:]}")


class LoggingPushNotifier:
    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.sent: list[dict[str, Any]] = []

    async def send(
        self, token: str, title: str, body: str, data: dict[str, Any] | None = None
    ) -> None:
        self.sent.append({"token": token, "title": title, "body": body, "data": data})
        self.logger.info(f"Push (not sent, no FCM key): {title} - {body}")
