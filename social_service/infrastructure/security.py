# social_service/infrastructure/security.py
import datetime
import secrets
from typing import Optional

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError
from passlib.context import CryptContext

from social_service.config import AppConfig


class SecurityService:
    def __init__(self, config: AppConfig):
        self.config = config
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return self.pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def _encode(self, data: dict, key: str, expire: datetime.datetime):
        to_encode = {**data, "exp": expire}
        return jwt.encode(to_encode, key, algorithm=self.config.ALGORITHM), expire

    def create_access_token(
        self, data: dict, expires_delta: Optional[datetime.timedelta] = None
    ):
        expire = datetime.datetime.now(datetime.timezone.utc) + (
            expires_delta or datetime.timedelta(minutes=15)
        )
        # nonce keeps two logins in the same second from producing equal tokens
        return self._encode(
            {**data, "nonce": secrets.token_hex(8)}, self.config.SECRET_KEY, expire
        )

    def create_refresh_token(self, data: dict):
        expire = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(
            days=self.config.REFRESH_TOKEN_EXPIRE_DAYS
        )
        return self._encode(
            {**data, "nonce": secrets.token_hex(8)},
            self.config.REFRESH_SECRET_KEY,
            expire,
        )

    def _decode_subject(self, token: str, key: str) -> Optional[str]:
        try:
            payload = jwt.decode(token, key, algorithms=[self.config.ALGORITHM])
        except (ExpiredSignatureError, InvalidTokenError):
            return None
        return payload.get("sub")

    def decode_access_token(self, token: str) -> Optional[str]:
        return self._decode_subject(token, self.config.SECRET_KEY)

    def decode_refresh_token(self, token: str) -> Optional[str]:
        return self._decode_subject(token, self.config.REFRESH_SECRET_KEY)
