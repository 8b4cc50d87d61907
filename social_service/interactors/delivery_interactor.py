# social_service/interactors/delivery_interactor.py
"""Message send pipeline.

A send moves Received -> Authorized -> Persisted -> Delivered. Any failure
before Persisted leaves no trace; once persisted, the room broadcast happens
before push notifications, and push failures never fail the send.
"""
import logging

from social_service.domain.errors import (
    AuthorizationError,
    BlockedError,
    NotFoundError,
    ValidationError,
)
from social_service.domain.events import MessageCreated, UserInfo
from social_service.domain.policies import compute_auto_delete_at, message_preview
from social_service.gateways.interfaces import (
    IChatGateway,
    IMessageGateway,
    IUserGateway,
)
from social_service.infrastructure import schemas
from social_service.infrastructure.event_dispatcher import EventDispatcher
from social_service.infrastructure.models import utcnow
from social_service.infrastructure.presence import PresenceTracker
from social_service.infrastructure.push import PushNotifier
from social_service.infrastructure.uow import UnitOfWork, UoWModel


class DeliveryInteractor:
    def __init__(
        self,
        uow: UnitOfWork,
        chat_gateway: IChatGateway,
        message_gateway: IMessageGateway,
        user_gateway: IUserGateway,
        event_dispatcher: EventDispatcher,
        presence: PresenceTracker,
        push_notifier: PushNotifier,
        logger: logging.Logger,
    ):
        self.uow = uow
        self.chat_gateway = chat_gateway
        self.message_gateway = message_gateway
        self.user_gateway = user_gateway
        self.event_dispatcher = event_dispatcher
        self.presence = presence
        self.push_notifier = push_notifier
        self.logger = logger

    async def send_message(self, message: schemas.SendMessage) -> schemas.Message:
        chat = await self.chat_gateway.get_chat(message.chat_id)
        sender = await self.user_gateway.get_user(message.sender_id)
        if chat is None or sender is None:
            raise NotFoundError("Invalid sender or chat")
        if sender.id not in chat.participant_ids:
            raise AuthorizationError("You are not a participant of this chat")
        if not message.content and not message.media_url:
            raise ValidationError("Message must have content or media")

        recipients = [user for user in chat.participants if user.id != sender.id]
        recipient_ids = [user.id for user in recipients]
        # all-or-nothing: one blocking recipient rejects the whole send
        if await self.user_gateway.get_blockers_of(sender.id, recipient_ids):
            raise BlockedError()
        restricted = await self.user_gateway.get_restricted_ids(sender.id)

        sent_at = utcnow()
        db_message = await self.message_gateway.create_message(
            message,
            sent_at=sent_at,
            auto_delete_at=compute_auto_delete_at(chat.auto_delete_time, sent_at),
        )
        db_message._model.sender = sender._model
        await self.chat_gateway.touch_activity(chat.id, sent_at)
        await self.uow.commit()

        result = schemas.Message.model_validate(db_message._model)
        self.logger.info(f"Message {result.id} stored in chat {chat.id}")

        if restricted.intersection(recipient_ids):
            self.logger.info(
                f"Broadcast of message {result.id} suppressed by sender restrictions"
            )
        else:
            await self.event_dispatcher.dispatch(self._created_event(result))

        await self._push(sender, recipients, restricted, result)
        return result

    @staticmethod
    def _created_event(message: schemas.Message) -> MessageCreated:
        return MessageCreated(
            message_id=message.id,
            chat_id=message.chat_id,
            sender_id=message.sender_id,
            content=message.content,
            message_type=message.message_type,
            media_url=message.media_url,
            sent_at=message.sent_at,
            auto_delete_at=message.auto_delete_at,
            sender=UserInfo(
                id=message.sender.id,
                username=message.sender.username,
                full_name=message.sender.full_name,
                profile_pic=message.sender.profile_pic,
            ),
            payload=message.model_dump(mode="json", by_alias=True),
        )

    async def _push(
        self,
        sender: UoWModel,
        recipients: list,
        restricted: set[int],
        message: schemas.Message,
    ) -> None:
        title = f"New message from {sender.full_name or sender.username}"
        body = message_preview(message.content, message.message_type)
        for recipient in recipients:
            if recipient.id in restricted or not recipient.fcm_token:
                continue
            if await self.presence.lookup(recipient.id) is not None:
                continue
            try:
                await self.push_notifier.send(
                    recipient.fcm_token,
                    title,
                    body,
                    {
                        "chatId": message.chat_id,
                        "senderId": message.sender_id,
                        "messageId": message.id,
                    },
                )
            except Exception as e:
                self.logger.error(f"Push to user {recipient.id} failed: {e!s}")
