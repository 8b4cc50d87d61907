# social_service/tests/unit/test_delivery_interactor.py
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from social_service.domain.errors import (
    AuthorizationError,
    BlockedError,
    NotFoundError,
    ValidationError,
)
from social_service.infrastructure import models, schemas
from social_service.infrastructure.push import PushError
from social_service.interactors.delivery_interactor import DeliveryInteractor

pytestmark = pytest.mark.asyncio


@pytest.fixture
def created_handler(event_dispatcher):
    handler = AsyncMock()
    event_dispatcher.register("MessageCreated", handler)
    return handler


@pytest.fixture
def delivery(uow, chat_gateway, message_gateway, user_gateway, event_dispatcher, presence, push_notifier, logger):
    return DeliveryInteractor(
        uow,
        chat_gateway,
        message_gateway,
        user_gateway,
        event_dispatcher,
        presence,
        push_notifier,
        logger,
    )


async def message_count(database) -> int:
    async with database.session() as session:
        return await session.scalar(select(func.count()).select_from(models.Message))


def outgoing(chat, sender, content="Hello"):
    return schemas.SendMessage(chat_id=chat.id, sender_id=sender.id, content=content)


async def test_send_persists_and_broadcasts(delivery, created_handler, private_chat, test_user, database):
    result = await delivery.send_message(outgoing(private_chat, test_user))

    assert result.id is not None
    assert result.sender.username == test_user.username
    assert result.auto_delete_at is None
    assert await message_count(database) == 1

    event = created_handler.await_args.args[0]
    assert event.message_id == result.id
    assert event.payload["chatId"] == private_chat.id
    assert event.payload["content"] == "Hello"


async def test_blocked_sender_leaves_no_trace(
    delivery, created_handler, user_gateway, uow, private_chat, test_user, test_user2, database, push_notifier
):
    await user_gateway.set_blocked(test_user2.id, test_user.id, True)
    await uow.commit()

    with pytest.raises(BlockedError):
        await delivery.send_message(outgoing(private_chat, test_user))

    assert await message_count(database) == 0
    created_handler.assert_not_awaited()
    assert push_notifier.sent == []


async def test_block_in_group_rejects_whole_send(
    delivery, user_gateway, uow, group_chat, make_user, chat_gateway, test_user, test_user2, database
):
    third = await make_user("third")
    await chat_gateway.add_member(group_chat, third.id)
    await user_gateway.set_blocked(third.id, test_user.id, True)
    await uow.commit()

    with pytest.raises(BlockedError):
        await delivery.send_message(outgoing(group_chat, test_user))
    assert await message_count(database) == 0


async def test_restriction_suppresses_broadcast(
    delivery, created_handler, user_gateway, uow, private_chat, test_user, test_user2, database
):
    await user_gateway.set_restricted(test_user.id, test_user2.id, True)
    await uow.commit()

    await delivery.send_message(outgoing(private_chat, test_user))

    assert await message_count(database) == 1
    created_handler.assert_not_awaited()


async def test_push_only_to_offline_recipients(
    delivery, uow, private_chat, test_user, test_user2, push_notifier
):
    test_user2.fcm_token = "device-token-2"
    await uow.commit()

    await delivery.send_message(outgoing(private_chat, test_user, "ping"))

    assert len(push_notifier.sent) == 1
    push = push_notifier.sent[0]
    assert push["token"] == "device-token-2"
    assert push["title"] == "New message from Test User"
    assert push["body"] == "ping"


async def test_online_recipient_gets_no_push(
    delivery, uow, presence, private_chat, test_user, test_user2, push_notifier
):
    test_user2.fcm_token = "device-token-2"
    await uow.commit()
    await presence.register(test_user2.id, "conn-2")

    await delivery.send_message(outgoing(private_chat, test_user))

    assert push_notifier.sent == []


async def test_media_preview_in_push(delivery, uow, private_chat, test_user, test_user2, push_notifier):
    test_user2.fcm_token = "device-token-2"
    await uow.commit()

    await delivery.send_message(
        schemas.SendMessage(
            chat_id=private_chat.id,
            sender_id=test_user.id,
            message_type="image",
            media_url="https://cdn.example.test/cat.png",
        )
    )

    assert push_notifier.sent[0]["body"] == "📷 Image"


async def test_push_failure_does_not_fail_send(
    uow, chat_gateway, message_gateway, user_gateway, event_dispatcher, presence, logger,
    private_chat, test_user, test_user2, caplog,
):
    test_user2.fcm_token = "device-token-2"
    await uow.commit()
    failing = AsyncMock()
    failing.send.side_effect = PushError("Push rejected: 500", status_code=500)
    interactor = DeliveryInteractor(
        uow, chat_gateway, message_gateway, user_gateway, event_dispatcher, presence, failing, logger
    )

    result = await interactor.send_message(outgoing(private_chat, test_user))

    assert result.id is not None
    assert f"Push to user {test_user2.id} failed" in caplog.text


async def test_auto_delete_at_follows_chat_policy(delivery, uow, private_chat, test_user):
    private_chat.auto_delete_time = "24h"
    await uow.commit()

    result = await delivery.send_message(outgoing(private_chat, test_user))

    assert result.auto_delete_at - result.sent_at == timedelta(hours=24)


async def test_non_participant_is_rejected(delivery, make_user, private_chat, database):
    outsider = await make_user("outsider")
    with pytest.raises(AuthorizationError):
        await delivery.send_message(outgoing(private_chat, outsider))
    assert await message_count(database) == 0


async def test_empty_message_is_rejected(delivery, private_chat, test_user):
    with pytest.raises(ValidationError):
        await delivery.send_message(outgoing(private_chat, test_user, content=""))


async def test_unknown_chat(delivery, test_user):
    with pytest.raises(NotFoundError):
        await delivery.send_message(
            schemas.SendMessage(chat_id=9999, sender_id=test_user.id, content="hi")
        )
