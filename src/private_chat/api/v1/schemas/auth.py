from __future__ import annotations

from pydantic import BaseModel

from private_chat.domain.value_objects.enums import Role


class SignInResponse(BaseModel):
    uid: str
    token: str
    role: Role


class PrincipalResponse(BaseModel):
    uid: str
    role: Role

    model_config = {"from_attributes": True}
