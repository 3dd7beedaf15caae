from __future__ import annotations

from dataclasses import dataclass

from private_chat.application.dto.principal import Principal
from private_chat.domain.entities.client_status import ClientStatus
from private_chat.domain.entities.message import Message
from private_chat.domain.value_objects.enums import SendAction
from private_chat.domain.value_objects.paths import ChatPaths


@dataclass(frozen=True, slots=True)
class ChatConfig:
    app_id: str
    client_uid: str
    master_uid: str | None = None
    special_code: str = "UNLOCK123"
    max_messages: int = 3
    hold_seconds: float = 3.0
    history_limit: int = 50

    def paths_for(self, principal: Principal) -> ChatPaths:
        """Conversation of the principal with its peer.

        Masters key the conversation off their own uid. Clients use the
        configured master uid and fall back to their own uid when none is set.
        """
        if principal.is_master:
            master_uid = principal.uid
        else:
            master_uid = self.master_uid or principal.uid
        return ChatPaths(
            app_id=self.app_id,
            master_uid=master_uid,
            client_uid=self.client_uid,
        )


@dataclass(frozen=True, slots=True)
class SendResult:
    """What a send wrote: the stored message and the resulting client status."""

    action: SendAction
    message: Message
    status: ClientStatus
