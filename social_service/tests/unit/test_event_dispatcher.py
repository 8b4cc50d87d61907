# social_service/tests/unit/test_event_dispatcher.py
from unittest.mock import AsyncMock

import pytest

from social_service.domain.events import MessagePinned
from social_service.infrastructure.event_dispatcher import EventDispatcher

pytestmark = pytest.mark.asyncio


def make_event():
    return MessagePinned(chat_id=1, message_id=2, action="pin", user_id=3)


async def test_dispatch_calls_registered_handlers():
    dispatcher = EventDispatcher()
    first, second = AsyncMock(), AsyncMock()
    dispatcher.register("MessagePinned", first)
    dispatcher.register("MessagePinned", second)

    event = make_event()
    await dispatcher.dispatch(event)

    first.assert_awaited_once_with(event)
    second.assert_awaited_once_with(event)


async def test_dispatch_ignores_other_event_types():
    dispatcher = EventDispatcher()
    handler = AsyncMock()
    dispatcher.register("MessageCreated", handler)

    await dispatcher.dispatch(make_event())

    handler.assert_not_awaited()


async def test_failing_handler_does_not_stop_the_rest(logger, caplog):
    dispatcher = EventDispatcher(logger)
    broken = AsyncMock(side_effect=RuntimeError("redis down"))
    healthy = AsyncMock()
    dispatcher.register("MessagePinned", broken)
    dispatcher.register("MessagePinned", healthy)

    await dispatcher.dispatch(make_event())

    healthy.assert_awaited_once()
    assert "Handler for MessagePinned failed: redis down" in caplog.text
