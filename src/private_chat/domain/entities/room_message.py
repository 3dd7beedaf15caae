from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


def guest_name(uid: str) -> str:
    return f"Guest-{uid[:4]}"


@dataclass(frozen=True, slots=True)
class RoomMessage:
    id: str
    text: str
    uid: str
    display_name: str
    timestamp: datetime | None

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> RoomMessage:
        return cls(
            id=doc_id,
            text=data.get("text", ""),
            uid=data.get("uid", ""),
            display_name=data.get("displayName") or "Anonymous",
            timestamp=data.get("timestamp"),
        )
