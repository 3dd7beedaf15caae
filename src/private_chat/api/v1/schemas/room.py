from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SendRoomMessageRequest(BaseModel):
    text: str = Field(..., max_length=4000)


class RoomMessageResponse(BaseModel):
    id: str
    text: str
    uid: str
    display_name: str
    timestamp: datetime | None

    model_config = {"from_attributes": True}


class RoomMessageCreatedResponse(BaseModel):
    id: str
