from __future__ import annotations

from fastapi import APIRouter

from private_chat.api.deps import CurrentPrincipal, StoreDep
from private_chat.api.v1.schemas.room import (
    RoomMessageCreatedResponse,
    RoomMessageResponse,
    SendRoomMessageRequest,
)
from private_chat.config import settings
from private_chat.services import room_service

router = APIRouter(prefix="/api/v1/room", tags=["room"])


@router.get("/messages", response_model=list[RoomMessageResponse])
async def list_messages(
    principal: CurrentPrincipal,
    store: StoreDep,
) -> list[RoomMessageResponse]:
    messages = await room_service.list_room_messages(settings.ROOM_COLLECTION, store)
    return [RoomMessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/messages", response_model=RoomMessageCreatedResponse, status_code=201)
async def send_message(
    body: SendRoomMessageRequest,
    principal: CurrentPrincipal,
    store: StoreDep,
) -> RoomMessageCreatedResponse:
    message_id = await room_service.send_room_message(
        principal, body.text, settings.ROOM_COLLECTION, store,
    )
    return RoomMessageCreatedResponse(id=message_id)
