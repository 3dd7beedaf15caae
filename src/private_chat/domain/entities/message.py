from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

SYSTEM_SENDER_ID = "SYSTEM"


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    text: str
    sender_id: str
    timestamp: datetime | None

    @property
    def is_system(self) -> bool:
        return self.sender_id == SYSTEM_SENDER_ID

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Message:
        return cls(
            id=doc_id,
            text=data.get("text", ""),
            sender_id=data.get("senderId", ""),
            timestamp=data.get("timestamp"),
        )

    def to_document(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "senderId": self.sender_id,
            "timestamp": self.timestamp,
        }
