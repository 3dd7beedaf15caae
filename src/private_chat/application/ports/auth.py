from __future__ import annotations

from typing import Protocol

from private_chat.application.dto.principal import Principal, SignIn


class AuthService(Protocol):
    async def sign_in_anonymously(self) -> SignIn: ...

    async def verify(self, token: str) -> Principal:
        """Resolve a custom or ID token into a principal. Raises AuthError."""
        ...

    async def sign_out(self, uid: str) -> None: ...
