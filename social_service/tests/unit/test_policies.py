# social_service/tests/unit/test_policies.py
from datetime import UTC, datetime, timedelta

import pytest

from social_service.domain.errors import ValidationError
from social_service.domain.policies import (
    auto_delete_window,
    compute_auto_delete_at,
    message_preview,
)

SENT_AT = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "policy,expected",
    [
        ("24h", SENT_AT + timedelta(hours=24)),
        ("1w", SENT_AT + timedelta(days=7)),
        ("30d", SENT_AT + timedelta(days=30)),
        ("never", None),
        (None, None),
    ],
)
def test_compute_auto_delete_at(policy, expected):
    assert compute_auto_delete_at(policy, SENT_AT) == expected


def test_unknown_policy_raises():
    with pytest.raises(ValidationError):
        auto_delete_window("2h")


@pytest.mark.parametrize(
    "content,message_type,expected",
    [
        ("hello", "text", "hello"),
        ("caption", "image", "caption"),
        (None, "image", "📷 Image"),
        ("", "video", "🎥 Video"),
        (None, "file", "📎 File"),
        (None, "text", "New message"),
        (None, None, "New message"),
    ],
)
def test_message_preview(content, message_type, expected):
    assert message_preview(content, message_type) == expected
