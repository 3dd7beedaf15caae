from __future__ import annotations

import asyncio
import logging
import uuid

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from private_chat.application.dto.principal import Principal, SignIn
from private_chat.application.exceptions import AuthError
from private_chat.application.policies.gating import resolve_role

logger = logging.getLogger(__name__)


class FirebaseAuthService:
    """Firebase Auth: ID-token verification, custom tokens, token revocation."""

    def __init__(self, app: firebase_admin.App, client_uid: str) -> None:
        self._app = app
        self._client_uid = client_uid

    async def sign_in_anonymously(self) -> SignIn:
        uid = uuid.uuid4().hex
        try:
            token = await asyncio.to_thread(
                firebase_auth.create_custom_token, uid, app=self._app,
            )
        except firebase_exceptions.FirebaseError as exc:
            raise AuthError(str(exc)) from exc
        logger.info("Issued anonymous custom token for %s", uid)
        return SignIn(uid=uid, token=token.decode() if isinstance(token, bytes) else token)

    async def verify(self, token: str) -> Principal:
        try:
            decoded = await asyncio.to_thread(
                firebase_auth.verify_id_token, token, app=self._app, check_revoked=True,
            )
        except (ValueError, firebase_exceptions.FirebaseError) as exc:
            raise AuthError(str(exc)) from exc
        uid = decoded["uid"]
        return Principal(uid=uid, role=resolve_role(uid, self._client_uid))

    async def sign_out(self, uid: str) -> None:
        try:
            await asyncio.to_thread(firebase_auth.revoke_refresh_tokens, uid, app=self._app)
        except firebase_exceptions.FirebaseError as exc:
            raise AuthError(str(exc)) from exc
        logger.info("Revoked refresh tokens of %s", uid)
