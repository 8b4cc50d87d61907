# social_service/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    PROJECT_NAME: str = "Social API"
    PROJECT_VERSION: str = "1.0.0"
    PROJECT_DESCRIPTION: str = "Realtime messaging and ad billing service"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_SECRET_KEY: str
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    DATABASE_URL: str = "sqlite+aiosqlite:///:memory:"

    # billing
    AD_INITIAL_WALLET: float = 2500
    BILLING_MAX_RETRIES: int = 5
    MAX_EVENTS_PER_BATCH: int = 10_000
    ENGAGEMENT_USERS_LIMIT: int = 10

    # realtime
    PRESENCE_BACKEND: str = "memory"  # "memory" or "redis"
    SWEEPER_ENABLED: bool = True
    SWEEP_INTERVAL_SECONDS: float = 3600

    # push notifications; unset key means pushes are only logged
    FCM_ENDPOINT: str = "https://fcm.googleapis.com/fcm/send"
    FCM_SERVER_KEY: str | None = None
    PUSH_TIMEOUT_SECONDS: float = 5.0

    model_config = SettingsConfigDict(env_file=".env", extra="allow")
