# social_service/domain/events.py
from datetime import datetime

from pydantic import BaseModel


class Event(BaseModel):
    pass


class UserInfo(BaseModel):
    id: int
    username: str
    full_name: str | None = None
    profile_pic: str | None = None


class MessageCreated(Event):
    message_id: int
    chat_id: int
    sender_id: int
    content: str | None
    message_type: str
    media_url: str | None = None
    sent_at: datetime
    auto_delete_at: datetime | None = None
    sender: UserInfo
    # camelCase wire form of the message
    payload: dict


class MessagePinned(Event):
    chat_id: int
    message_id: int
    action: str
    user_id: int


class MessageRead(Event):
    chat_id: int
    message_id: int
    sender_id: int
    read_by: int
    read_at: datetime
