from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_ID: str = "default-app-id"

    CLIENT_UID: str = "client_user_12345"
    MASTER_UID: str | None = None
    SPECIAL_CODE: str = "UNLOCK123"
    MAX_MESSAGES_BEFORE_LOCK: int = 3
    HOLD_TIMEOUT_SECONDS: float = 3.0
    HISTORY_LIMIT: int = 50

    ROOM_COLLECTION: str = "chats"

    AUTH_MODE: Literal["hs256", "firebase"] = "hs256"
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    ANONYMOUS_TOKEN_TTL_SECONDS: int = 3600

    FIREBASE_CREDENTIALS: str | None = None
    FIREBASE_PROJECT_ID: str | None = None

    CORS_ORIGINS: list[str] = ["*"]

    WS_HEARTBEAT_SECONDS: int = 30

    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
