# social_service/infrastructure/schemas.py
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from social_service.domain.policies import AutoDeletePolicy

MessageType = Literal["text", "image", "video", "file"]
AdModel = Literal["free", "premium", "elite", "ultimate"]
AdContentType = Literal["image", "video"]
AdElement = Literal["app_installation", "form", "webpage"]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# users


class UserBase(CamelModel):
    username: str
    email: EmailStr


class UserBasic(CamelModel):
    id: int
    username: str
    full_name: str | None = None
    profile_pic: str | None = None


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)
    full_name: str | None = None


class UserUpdate(CamelModel):
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8)
    username: str | None = None
    full_name: str | None = None
    age: int | None = Field(None, ge=0)
    gender: str | None = None
    city: str | None = None
    profile_pic: str | None = None
    fcm_token: str | None = None
    auto_delete_chat: AutoDeletePolicy | None = None
    is_active: bool | None = None  # sort of soft deleting


class User(UserBase):
    id: int
    created_at: datetime
    is_active: bool
    full_name: str | None = None
    age: int | None = None
    gender: str | None = None
    city: str | None = None
    profile_pic: str | None = None
    is_online: bool = False
    last_seen: datetime | None = None
    auto_delete_chat: AutoDeletePolicy = "never"


class OnlineUsers(CamelModel):
    user_ids: list[int]


# chats


class Chat(CamelModel):
    id: int
    is_group: bool
    group_name: str | None = None
    group_photo: str | None = None
    group_theme: str | None = None
    admin_id: int | None = None
    auto_delete_time: AutoDeletePolicy = "never"
    created_at: datetime
    last_activity: datetime
    participants: list[UserBasic] = Field(default_factory=list)
    pinned_message_ids: list[int] = Field(default_factory=list)


class ChatRef(CamelModel):
    chat_id: int


class PrivateChatCreate(CamelModel):
    user_id1: int
    user_id2: int


class PrivateChatResponse(CamelModel):
    message: str
    chat_id: int
    created: bool


class AutoDeleteSetting(CamelModel):
    chat_id: int
    auto_delete_time: AutoDeletePolicy


class MessageFilter(CamelModel):
    chat_id: int
    year: int = Field(..., ge=1970)
    month: int = Field(..., ge=1, le=12)
    day: int | None = Field(None, ge=1, le=31)


class BlockUpdate(CamelModel):
    user_id: int | None = None
    target_user_id: int
    action: Literal["block", "unblock"]


class RestrictUpdate(CamelModel):
    user_id: int | None = None
    target_user_id: int
    action: Literal["restrict", "unrestrict"]


class RelationList(CamelModel):
    users: list[UserBasic]


class StatusMessage(CamelModel):
    message: str


class GroupCreate(CamelModel):
    admin_id: int | None = None
    group_name: str
    participants: list[int] = Field(default_factory=list)
    group_theme: str | None = None
    group_photo: str | None = None


class GroupMemberUpdate(CamelModel):
    group_id: int
    member_id: int


class GroupRef(CamelModel):
    group_id: int


class GroupProfileUpdate(CamelModel):
    group_id: int
    group_name: str | None = None
    group_photo: str | None = None
    group_theme: str | None = None


class PinRequest(CamelModel):
    chat_id: int
    message_id: int
    action: Literal["pin", "unpin"]


class PinResponse(CamelModel):
    message_id: int
    action: Literal["pin", "unpin"]


# messages


class ReadReceipt(CamelModel):
    user_id: int
    read_at: datetime


class Message(CamelModel):
    id: int
    chat_id: int
    sender_id: int
    content: str | None = None
    message_type: MessageType = "text"
    media_url: str | None = None
    media_name: str | None = None
    is_pinned: bool = False
    sent_at: datetime
    auto_delete_at: datetime | None = None
    sender: UserBasic
    read_by: list[ReadReceipt] = Field(default_factory=list)


class SendMessage(CamelModel):
    chat_id: int
    sender_id: int
    content: str | None = None
    message_type: MessageType = "text"
    media_url: str | None = None
    media_name: str | None = None


# socket payloads


class TypingPayload(CamelModel):
    receiver_id: int
    is_typing: bool


class GroupTypingPayload(CamelModel):
    group_id: int
    is_typing: bool
    user_id: int | None = None


class PinPayload(CamelModel):
    chat_id: int
    message_id: int
    action: str
    user_id: int | None = None


class ReadPayload(CamelModel):
    message_id: int


# advertisements


class AdActions(CamelModel):
    model_config = ConfigDict(extra="forbid")

    impressions: int = Field(0, ge=0)
    clicks: int = Field(0, ge=0)
    views: int = Field(0, ge=0)
    engagements: int = Field(0, ge=0)
    installs: int = Field(0, ge=0)
    form_submits: int = Field(0, ge=0)


class TrackEventRequest(CamelModel):
    ad_id: int
    actions: AdActions


class AdRef(CamelModel):
    ad_id: int


class FormSubmitRequest(CamelModel):
    ad_id: int
    form_data: dict = Field(default_factory=dict)


class EngageRequest(CamelModel):
    ad_id: int
    reaction: str | None = None


class BillingResult(CamelModel):
    wallet_before: float
    wallet_after: float
    cost: float
    overage: float


class AdCreate(CamelModel):
    business_name: str
    about_business: str | None = None
    industrial_sector: str | None = None
    business_website: str | None = None
    type_of_ad_content: AdContentType
    ad_content_url: str | None = None
    ad_elements: AdElement
    app_store_link: str | None = None
    play_store_link: str | None = None
    ad_model: AdModel
    targeted_age_group: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    form_fields: list[str] = Field(default_factory=list)


class Advertisement(CamelModel):
    id: int
    business_id: int
    type_of_ad_content: AdContentType
    ad_content_url: str | None = None
    ad_elements: AdElement
    ad_model: AdModel
    targeted_age_group: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    wallet: float
    is_active: bool
    created_at: datetime


class AdCounters(CamelModel):
    impressions: int
    clicks: int
    views: int
    engagements: int
    installs: int
    form_submits: int


class AdBilling(CamelModel):
    total_spent: float
    overage: float


class AdAnalytics(CamelModel):
    analytics: AdCounters
    billing: AdBilling
    wallet: float
    is_active: bool


class MetricLine(BaseModel):
    count: int
    amount: float


class Metrics(BaseModel):
    CPM: MetricLine
    CPC: MetricLine
    CPI: MetricLine
    CPE: MetricLine
    CPV: MetricLine
    CPA: MetricLine


class AdSummary(CamelModel):
    name: str
    created_at: datetime
    about: str
    ad_content: str | None = None
    ad_content_type: AdContentType
    ad_element: AdElement
    ad_model: AdModel
    user_base: int = 0


class EngagementUser(CamelModel):
    name: str
    age: int | None = None
    gender: str | None = None
    city: str | None = None
    date: datetime
    reaction: str = ""
    profile_pic: str = ""


class Engagement(CamelModel):
    total: int
    reactions: dict[str, int]
    users: list[EngagementUser]


class AdMetrics(CamelModel):
    ad: AdSummary
    metrics: Metrics
    total_bill: float
    engagement: Engagement


# tokens


class TokenBase(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str


class TokenCreate(TokenBase):
    expires_at: datetime
    user_id: int


class Token(TokenBase):
    id: int
    expires_at: datetime
    user_id: int

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    expires_at: datetime
    user_id: int


class RefreshTokenRequest(BaseModel):
    refresh_token: str
