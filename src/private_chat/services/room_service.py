"""Open chat room: every signed-in guest shares one message stream."""
from __future__ import annotations

from typing import Awaitable, Callable

from private_chat.application.dto.principal import Principal
from private_chat.application.exceptions import ValidationError
from private_chat.application.ports.store import (
    DocumentSnapshot,
    DocumentStore,
    ErrorCallback,
    Query,
    Unsubscribe,
)
from private_chat.domain.entities.room_message import RoomMessage, guest_name


def room_query(collection: str) -> Query:
    return Query(collection=collection, order_by="timestamp", direction="asc")


def _to_messages(snapshots: list[DocumentSnapshot]) -> list[RoomMessage]:
    return [RoomMessage.from_document(s.id, s.data or {}) for s in snapshots]


async def send_room_message(
    principal: Principal,
    text: str,
    collection: str,
    store: DocumentStore,
) -> str:
    if not text.strip():
        raise ValidationError("Message text is empty")
    return await store.add(
        collection,
        {
            "text": text,
            "timestamp": store.server_timestamp(),
            "uid": principal.uid,
            "displayName": guest_name(principal.uid),
        },
    )


async def list_room_messages(collection: str, store: DocumentStore) -> list[RoomMessage]:
    return _to_messages(await store.query(room_query(collection)))


async def watch_room(
    collection: str,
    store: DocumentStore,
    on_next: Callable[[list[RoomMessage]], Awaitable[None]],
    on_error: ErrorCallback | None = None,
) -> Unsubscribe:
    async def _deliver(snapshots: list[DocumentSnapshot]) -> None:
        await on_next(_to_messages(snapshots))

    return await store.watch_query(room_query(collection), _deliver, on_error)
