# social_service/domain/policies.py
from datetime import datetime, timedelta
from typing import Literal

from social_service.domain.errors import ValidationError

AutoDeletePolicy = Literal["never", "24h", "1w", "30d"]

AUTO_DELETE_WINDOWS: dict[str, timedelta | None] = {
    "never": None,
    "24h": timedelta(hours=24),
    "1w": timedelta(weeks=1),
    "30d": timedelta(days=30),
}

MEDIA_PREVIEW_LABELS = {
    "image": "📷 Image",
    "video": "🎥 Video",
    "file": "📎 File",
}


def auto_delete_window(policy: str | None) -> timedelta | None:
    if policy is None:
        return None
    if policy not in AUTO_DELETE_WINDOWS:
        raise ValidationError(f"Unknown auto-delete setting: {policy}")
    return AUTO_DELETE_WINDOWS[policy]


def compute_auto_delete_at(policy: str | None, sent_at: datetime) -> datetime | None:
    window = auto_delete_window(policy)
    return sent_at + window if window else None


def message_preview(content: str | None, message_type: str | None) -> str:
    if content:
        return content
    return MEDIA_PREVIEW_LABELS.get(message_type or "text", "New message")
