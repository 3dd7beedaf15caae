from __future__ import annotations

from dataclasses import dataclass

from private_chat.domain.value_objects.enums import Role


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from a verified token."""

    uid: str
    role: Role

    @property
    def is_master(self) -> bool:
        return self.role == Role.MASTER

    @property
    def is_client(self) -> bool:
        return self.role == Role.CLIENT


@dataclass(frozen=True, slots=True)
class SignIn:
    uid: str
    token: str
