from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from private_chat.domain.value_objects.enums import Role, SessionPhase


@dataclass(frozen=True, slots=True)
class Notice:
    """Blocking dialog shown to the user until dismissed."""

    title: str
    message: str


@dataclass(frozen=True, slots=True)
class MessageView:
    id: str
    text: str
    sender_id: str
    sender_label: str
    is_system: bool
    is_own: bool
    time: str


@dataclass(frozen=True, slots=True)
class StatusView:
    is_logged_in: bool
    msg_count: int
    messages_left: int
    force_logout: bool
    last_login: datetime | None


@dataclass(frozen=True, slots=True)
class SessionView:
    """Everything the browser needs to render one session."""

    phase: SessionPhase
    uid: str | None = None
    role: Role | None = None
    client_uid: str | None = None
    client_status: StatusView | None = None
    can_send: bool = False
    show_login_notice: bool = False
    holding: bool = False
    special_code: str | None = None
    messages: list[MessageView] = field(default_factory=list)
    notice: Notice | None = None
