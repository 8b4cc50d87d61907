# social_service/tests/unit/test_security.py
import datetime

import pytest

from social_service.config import AppConfig
from social_service.infrastructure.security import SecurityService


@pytest.fixture
def security_service():
    config = AppConfig(
        SECRET_KEY="test_secret",
        ALGORITHM="HS256",
        REFRESH_SECRET_KEY="test_refresh_secret",
    )
    return SecurityService(config)


def test_password_hashing(security_service):
    password = "testpassword"
    hashed = security_service.get_password_hash(password)
    assert security_service.verify_password(password, hashed)
    assert not security_service.verify_password("wrongpassword", hashed)


def test_token_decoding(security_service):
    data = {"sub": "testuser"}
    access_token, _ = security_service.create_access_token(data)
    refresh_token, _ = security_service.create_refresh_token(data)

    assert security_service.decode_access_token(access_token) == "testuser"
    assert security_service.decode_refresh_token(refresh_token) == "testuser"


def test_tokens_are_unique_per_issue(security_service):
    first, _ = security_service.create_access_token({"sub": "testuser"})
    second, _ = security_service.create_access_token({"sub": "testuser"})
    assert first != second


def test_keys_are_not_interchangeable(security_service):
    access_token, _ = security_service.create_access_token({"sub": "testuser"})
    refresh_token, _ = security_service.create_refresh_token({"sub": "testuser"})

    assert security_service.decode_refresh_token(access_token) is None
    assert security_service.decode_access_token(refresh_token) is None


def test_expired_token_is_rejected(security_service):
    token, expire = security_service.create_access_token(
        {"sub": "testuser"}, expires_delta=datetime.timedelta(seconds=-1)
    )
    assert expire < datetime.datetime.now(datetime.timezone.utc)
    assert security_service.decode_access_token(token) is None


def test_garbage_token_is_rejected(security_service):
    assert security_service.decode_access_token("not-a-jwt") is None
