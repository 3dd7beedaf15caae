"""Wire shape of the live session view pushed over the WebSocket."""
from __future__ import annotations

from pydantic import BaseModel

from private_chat.api.v1.schemas.chat import ClientStatusResponse
from private_chat.domain.value_objects.enums import Role, SessionPhase


class NoticeResponse(BaseModel):
    title: str
    message: str

    model_config = {"from_attributes": True}


class MessageViewResponse(BaseModel):
    id: str
    text: str
    sender_id: str
    sender_label: str
    is_system: bool
    is_own: bool
    time: str

    model_config = {"from_attributes": True}


class SessionStateResponse(BaseModel):
    phase: SessionPhase
    uid: str | None = None
    role: Role | None = None
    client_uid: str | None = None
    client_status: ClientStatusResponse | None = None
    can_send: bool = False
    show_login_notice: bool = False
    holding: bool = False
    special_code: str | None = None
    messages: list[MessageViewResponse] = []
    notice: NoticeResponse | None = None

    model_config = {"from_attributes": True}
