"""Message gating rules for the master/client chat."""
from __future__ import annotations

from private_chat.application.dto.principal import Principal
from private_chat.application.exceptions import (
    ConflictError,
    ForbiddenError,
    MessageLimitError,
    ValidationError,
)
from private_chat.domain.entities.client_status import ClientStatus
from private_chat.domain.value_objects.enums import Role, SendAction


def resolve_role(uid: str, client_uid: str) -> Role:
    return Role.CLIENT if uid == client_uid else Role.MASTER


def is_special_code(text: str, special_code: str) -> bool:
    return text.strip().upper() == special_code.upper()


def can_client_send(status: ClientStatus, max_messages: int) -> bool:
    return (
        status.is_logged_in
        and not status.force_logout
        and status.msg_count < max_messages
    )


def messages_left(status: ClientStatus, max_messages: int) -> int:
    return max(0, max_messages - status.msg_count)


def decide_send(
    principal: Principal,
    status: ClientStatus,
    text: str,
    *,
    special_code: str,
    max_messages: int,
) -> SendAction:
    """Decide what a send does, or raise if nothing may be written."""
    if not text.strip():
        raise ValidationError("Message text is empty")

    if principal.is_master:
        if not status.is_logged_in:
            raise ConflictError("Client is offline")
        return SendAction.POST

    if not status.is_logged_in:
        raise ForbiddenError("Client is not logged in")

    if status.force_logout:
        raise ForbiddenError("The master has logged the client out")

    # The code must still get through once the limit is reached.
    if is_special_code(text, special_code):
        return SendAction.RESET_COUNTER

    if status.msg_count >= max_messages:
        raise MessageLimitError(
            f"You have sent {max_messages} messages. "
            "Ask the master for the special code to continue."
        )
    return SendAction.POST
