"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.requests import HTTPConnection

from private_chat.application.dto.chat import ChatConfig
from private_chat.application.dto.principal import Principal
from private_chat.application.exceptions import AuthError
from private_chat.application.ports.auth import AuthService
from private_chat.application.ports.clock import Clock, SystemClock
from private_chat.application.ports.store import DocumentStore
from private_chat.config import settings
from private_chat.domain.value_objects.paths import ChatPaths
from private_chat.infrastructure.auth.hs256_auth import HS256AuthService
from private_chat.infrastructure.firestore.app import init_firebase

_bearer_scheme = HTTPBearer()


def get_chat_config() -> ChatConfig:
    return ChatConfig(
        app_id=settings.APP_ID,
        client_uid=settings.CLIENT_UID,
        master_uid=settings.MASTER_UID,
        special_code=settings.SPECIAL_CODE,
        max_messages=settings.MAX_MESSAGES_BEFORE_LOCK,
        hold_seconds=settings.HOLD_TIMEOUT_SECONDS,
        history_limit=settings.HISTORY_LIMIT,
    )


ChatConfigDep = Annotated[ChatConfig, Depends(get_chat_config)]


def get_store(conn: HTTPConnection) -> DocumentStore:
    return conn.app.state.store


StoreDep = Annotated[DocumentStore, Depends(get_store)]


def get_clock() -> Clock:
    return SystemClock()


ClockDep = Annotated[Clock, Depends(get_clock)]


def _build_auth_service() -> AuthService:
    if settings.AUTH_MODE == "firebase":
        from private_chat.infrastructure.auth.firebase_auth import FirebaseAuthService

        app = init_firebase(settings.FIREBASE_CREDENTIALS, settings.FIREBASE_PROJECT_ID)
        return FirebaseAuthService(app, settings.CLIENT_UID)
    assert settings.JWT_SECRET, "JWT_SECRET must be set when AUTH_MODE=hs256"
    return HS256AuthService(
        settings.JWT_SECRET,
        settings.CLIENT_UID,
        settings.JWT_ALGORITHM,
        settings.ANONYMOUS_TOKEN_TTL_SECONDS,
    )


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    global _auth_service  # noqa: PLW0603
    if _auth_service is None:
        _auth_service = _build_auth_service()
    return _auth_service


AuthDep = Annotated[AuthService, Depends(get_auth_service)]


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    auth: AuthDep,
) -> Principal:
    try:
        return await auth.verify(credentials.credentials)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.detail,
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


async def get_current_master(principal: CurrentPrincipal) -> Principal:
    if not principal.is_master:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Master access required")
    return principal


CurrentMaster = Annotated[Principal, Depends(get_current_master)]


def get_chat_paths(principal: CurrentPrincipal, config: ChatConfigDep) -> ChatPaths:
    return config.paths_for(principal)


ChatPathsDep = Annotated[ChatPaths, Depends(get_chat_paths)]
