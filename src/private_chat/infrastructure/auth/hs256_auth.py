from __future__ import annotations

import logging
import time
import uuid

import jwt

from private_chat.application.dto.principal import Principal, SignIn
from private_chat.application.exceptions import AuthError
from private_chat.application.policies.gating import resolve_role

logger = logging.getLogger(__name__)


class HS256AuthService:
    """Mint and verify custom tokens signed with a shared HS256 secret.

    Sign-out is recorded per uid: tokens issued at or before the sign-out
    time are rejected from then on.
    """

    def __init__(
        self,
        secret: str,
        client_uid: str,
        algorithm: str = "HS256",
        ttl_seconds: int = 3600,
    ) -> None:
        self._secret = secret
        self._client_uid = client_uid
        self._algorithm = algorithm
        self._ttl_seconds = ttl_seconds
        self._revoked_at: dict[str, float] = {}

    def issue_token(self, uid: str, ttl_seconds: int | None = None) -> str:
        now = time.time()
        ttl = self._ttl_seconds if ttl_seconds is None else ttl_seconds
        return jwt.encode(
            {"sub": uid, "iat": now, "exp": now + ttl},
            self._secret,
            algorithm=self._algorithm,
        )

    async def sign_in_anonymously(self) -> SignIn:
        uid = uuid.uuid4().hex
        logger.info("Anonymous sign-in as %s", uid)
        return SignIn(uid=uid, token=self.issue_token(uid))

    async def verify(self, token: str) -> Principal:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError as exc:
            raise AuthError(str(exc)) from exc

        uid = payload.get("sub")
        if not uid:
            raise AuthError("Token has no subject")
        revoked_at = self._revoked_at.get(uid)
        if revoked_at is not None and float(payload.get("iat", 0)) <= revoked_at:
            raise AuthError("Token has been revoked")
        return Principal(uid=uid, role=resolve_role(uid, self._client_uid))

    async def sign_out(self, uid: str) -> None:
        self._revoked_at[uid] = time.time()
        logger.info("Signed out %s", uid)
