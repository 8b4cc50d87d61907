# social_service/infrastructure/event_dispatcher.py
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable

from social_service.domain.events import Event

Handler = Callable[[Event], Awaitable[None]]


class EventDispatcher:
    """Fans a domain event out to every handler registered for its class name.

    A failing handler is logged and the remaining handlers still run.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.handlers: dict[str, list[Handler]] = defaultdict(list)
        self.logger = logger or logging.getLogger("SocialAPI")

    def register(self, event_type: str, handler: Handler) -> None:
        self.handlers[event_type].append(handler)

    async def dispatch(self, event: Event) -> None:
        event_type = event.__class__.__name__
        for handler in self.handlers[event_type]:
            try:
                await handler(event)
            except Exception as e:
                self.logger.error(f"Handler for {event_type} failed: {e!s}")
