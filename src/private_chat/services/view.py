from __future__ import annotations

from datetime import datetime

from private_chat.application.dto.session import MessageView, StatusView
from private_chat.application.policies.gating import messages_left
from private_chat.domain.entities.client_status import ClientStatus
from private_chat.domain.entities.message import Message


def format_timestamp(timestamp: datetime | None) -> str:
    """Render as ``HH:MM AM/PM`` in the server's local zone.

    Stored timestamps are UTC; naive values are taken as local time already.
    """
    if timestamp is None:
        return "..."
    return timestamp.astimezone().strftime("%I:%M %p")


def sender_label(message: Message, viewer_uid: str) -> str:
    if message.sender_id == viewer_uid:
        return "You"
    if message.is_system:
        return "System"
    return "The Other Party"


def to_message_view(message: Message, viewer_uid: str) -> MessageView:
    return MessageView(
        id=message.id,
        text=message.text,
        sender_id=message.sender_id,
        sender_label=sender_label(message, viewer_uid),
        is_system=message.is_system,
        is_own=message.sender_id == viewer_uid,
        time=format_timestamp(message.timestamp),
    )


def to_status_view(status: ClientStatus, max_messages: int) -> StatusView:
    return StatusView(
        is_logged_in=status.is_logged_in,
        msg_count=status.msg_count,
        messages_left=messages_left(status, max_messages),
        force_logout=status.force_logout,
        last_login=status.last_login,
    )
