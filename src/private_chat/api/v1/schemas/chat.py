from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from private_chat.domain.value_objects.enums import SendAction


class SendMessageRequest(BaseModel):
    text: str = Field(..., max_length=4000)


class MessageResponse(BaseModel):
    id: str
    text: str
    sender_id: str
    timestamp: datetime | None
    is_system: bool

    model_config = {"from_attributes": True}


class ClientStatusResponse(BaseModel):
    is_logged_in: bool
    msg_count: int
    messages_left: int
    force_logout: bool
    last_login: datetime | None

    model_config = {"from_attributes": True}


class SendMessageResponse(BaseModel):
    action: SendAction
    message: MessageResponse
    status: ClientStatusResponse
