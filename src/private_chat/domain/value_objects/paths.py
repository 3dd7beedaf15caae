"""Document paths inside the hosted store."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ChatPaths:
    """Locates one master/client conversation and the shared client status."""

    app_id: str
    master_uid: str
    client_uid: str

    @property
    def conversation_key(self) -> str:
        return f"{self.master_uid}_{self.client_uid}"

    @property
    def messages_collection(self) -> str:
        return f"artifacts/{self.app_id}/public/data/chats/{self.conversation_key}/messages"

    @property
    def client_status_doc(self) -> str:
        return f"artifacts/{self.app_id}/public/data/users/{self.client_uid}"
