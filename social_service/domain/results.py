# social_service/domain/results.py
"""Outcome of a socket event handler.

Handlers return ``Ok`` or ``Failure`` instead of emitting error events
themselves; the socket layer renders a ``Failure`` on the channel the client
expects for that event.
"""
from dataclasses import dataclass
from typing import Any

from social_service.domain.errors import DomainError

# events whose failures are reported on "messageError" with an "error" key
MESSAGE_ERROR_EVENTS = frozenset({"sendMessage"})


@dataclass(frozen=True)
class Ok:
    value: Any = None


@dataclass(frozen=True)
class Failure:
    event: str
    error: DomainError

    @property
    def channel(self) -> str:
        return "messageError" if self.event in MESSAGE_ERROR_EVENTS else "error"

    def to_wire(self) -> tuple[str, dict[str, str]]:
        if self.channel == "messageError":
            return self.channel, {"error": self.error.message}
        return self.channel, {"message": self.error.message}


HandlerResult = Ok | Failure
