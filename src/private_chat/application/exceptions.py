from __future__ import annotations


class AppError(Exception):
    """Base error of the chat service; ``detail`` is shown to the user."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    """A document the operation needs does not exist."""


class ForbiddenError(AppError):
    """The caller's role may not perform the operation."""


class ConflictError(AppError):
    """The session or the counterpart is in the wrong state."""


class ValidationError(AppError):
    pass


class MessageLimitError(AppError):
    """Client reached the message limit and must send the special code."""


class StoreError(AppError):
    """The document store rejected or failed a request."""


class AuthError(AppError):
    pass
