from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    MASTER = "master"
    CLIENT = "client"


class SessionPhase(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    MASTER_VIEW = "master_view"
    CLIENT_VIEW = "client_view"
    LOGGING_OUT = "logging_out"


class SendAction(StrEnum):
    POST = "post"
    RESET_COUNTER = "reset_counter"


class SendOutcome(StrEnum):
    SENT = "sent"
    CODE_ACCEPTED = "code_accepted"
    REJECTED = "rejected"
    FAILED = "failed"
