# social_service/infrastructure/models.py
from datetime import UTC, datetime
from decimal import Decimal
from typing import List, Optional

from social_service.infrastructure.database import Base
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(UTC)


chat_participants = Table(
    "chat_participants",
    Base.metadata,
    Column("chat_id", Integer, ForeignKey("chats.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

chat_pinned_messages = Table(
    "chat_pinned_messages",
    Base.metadata,
    Column("chat_id", Integer, ForeignKey("chats.id", ondelete="CASCADE"), primary_key=True),
    Column("message_id", Integer, ForeignKey("messages.id", ondelete="CASCADE"), primary_key=True),
)

user_blocks = Table(
    "user_blocks",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("blocked_user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

user_restrictions = Table(
    "user_restrictions",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("restricted_user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    username: Mapped[str] = mapped_column(String, unique=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String)
    full_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    profile_pic: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_online: Mapped[bool] = mapped_column(Boolean, default=False)
    last_seen: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    fcm_token: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    auto_delete_chat: Mapped[str] = mapped_column(
        String, default="never", server_default="never", index=True
    )

    chats: Mapped[List["Chat"]] = relationship(
        "Chat",
        secondary=chat_participants,
        back_populates="participants",
        lazy="select",
    )
    blocked_users: Mapped[List["User"]] = relationship(
        "User",
        secondary=user_blocks,
        primaryjoin=lambda: User.id == user_blocks.c.user_id,
        secondaryjoin=lambda: User.id == user_blocks.c.blocked_user_id,
        lazy="select",
    )
    restricted_users: Mapped[List["User"]] = relationship(
        "User",
        secondary=user_restrictions,
        primaryjoin=lambda: User.id == user_restrictions.c.user_id,
        secondaryjoin=lambda: User.id == user_restrictions.c.restricted_user_id,
        lazy="select",
    )
    tokens: Mapped[List["Token"]] = relationship(
        "Token", back_populates="user", lazy="select", cascade="all, delete-orphan"
    )


class Chat(Base):
    __tablename__ = "chats"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    is_group: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    group_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    group_photo: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    group_theme: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    admin_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    # "<low id>:<high id>" for private chats, NULL for groups
    private_key: Mapped[Optional[str]] = mapped_column(
        String, unique=True, nullable=True
    )
    auto_delete_time: Mapped[str] = mapped_column(
        String, default="never", server_default="never"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    last_activity: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    participants: Mapped[List[User]] = relationship(
        "User", secondary=chat_participants, back_populates="chats", lazy="selectin"
    )
    pinned_messages: Mapped[List["Message"]] = relationship(
        "Message", secondary=chat_pinned_messages, lazy="selectin", viewonly=True
    )
    messages: Mapped[List["Message"]] = relationship(
        "Message", back_populates="chat", lazy="select", passive_deletes=True
    )

    @property
    def participant_ids(self) -> list[int]:
        return [user.id for user in self.participants]

    @property
    def pinned_message_ids(self) -> list[int]:
        return [message.id for message in self.pinned_messages]


class Message(Base):
    __tablename__ = "messages"

    __table_args__ = (
        Index("ix_messages_chat_sent", "chat_id", "sent_at"),
        Index("ix_messages_sender_sent", "sender_id", "sent_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    chat_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("chats.id", ondelete="CASCADE"), index=True
    )
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    content: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    message_type: Mapped[str] = mapped_column(String, default="text")
    media_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    media_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    auto_delete_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    chat: Mapped[Chat] = relationship(
        "Chat",
        back_populates="messages",
        lazy="select",
    )
    sender: Mapped[User] = relationship(
        "User",
        lazy="joined",  # Many-to-one, always rendered with the message
    )
    read_by: Mapped[List["MessageRead"]] = relationship(
        "MessageRead",
        back_populates="message",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class MessageRead(Base):
    __tablename__ = "message_reads"

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_message_reads_message_user"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    message_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("messages.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    read_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    message: Mapped[Message] = relationship(
        "Message", back_populates="read_by", lazy="select"
    )


class Token(Base):
    __tablename__ = "tokens"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    access_token: Mapped[str] = mapped_column(String, unique=True, index=True)
    refresh_token: Mapped[Optional[str]] = mapped_column(
        String, unique=True, index=True, nullable=True
    )
    token_type: Mapped[str] = mapped_column(String)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE")
    )

    user: Mapped[User] = relationship("User", back_populates="tokens", lazy="select")


class BusinessProfile(Base):
    __tablename__ = "business_profiles"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), index=True)
    business_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    about_business: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    industrial_sector: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    business_website: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


class Advertisement(Base):
    __tablename__ = "advertisements"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    business_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("business_profiles.id"), index=True
    )
    type_of_ad_content: Mapped[str] = mapped_column(String)
    ad_content_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    ad_elements: Mapped[str] = mapped_column(String)
    app_store_link: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    play_store_link: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    ad_model: Mapped[str] = mapped_column(String, index=True)
    targeted_age_group: Mapped[list] = mapped_column(JSON, default=list)
    interests: Mapped[list] = mapped_column(JSON, default=list)
    form_fields: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )

    # analytics counters
    impressions: Mapped[int] = mapped_column(Integer, default=0)
    clicks: Mapped[int] = mapped_column(Integer, default=0)
    views: Mapped[int] = mapped_column(Integer, default=0)
    engagements: Mapped[int] = mapped_column(Integer, default=0)
    installs: Mapped[int] = mapped_column(Integer, default=0)
    form_submits: Mapped[int] = mapped_column(Integer, default=0)
    user_base: Mapped[int] = mapped_column(Integer, default=0)

    # ledger
    wallet: Mapped[Decimal] = mapped_column(Numeric(18, 4), default=Decimal(2500))
    total_spent: Mapped[Decimal] = mapped_column(Numeric(18, 4), default=Decimal(0))
    overage: Mapped[Decimal] = mapped_column(Numeric(18, 4), default=Decimal(0))
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    business: Mapped[BusinessProfile] = relationship(
        "BusinessProfile", lazy="joined"
    )

    __mapper_args__ = {"version_id_col": version_id}


class AdEvent(Base):
    __tablename__ = "ad_events"

    __table_args__ = (
        Index("ix_ad_events_ad_type_time", "ad_id", "event_type", "timestamp"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    ad_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("advertisements.id", ondelete="CASCADE"), index=True
    )
    event_type: Mapped[str] = mapped_column(String)
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    reaction: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    user: Mapped[Optional[User]] = relationship("User", lazy="joined")


class AdFormSubmission(Base):
    __tablename__ = "ad_form_submissions"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    ad_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("advertisements.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    form_data: Mapped[dict] = mapped_column(JSON, default=dict)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
