"""Live state of one connected browser session.

A ``ChatSession`` owns the subscriptions to the client status document and to
the conversation, applies the gating policy against the live status and
publishes a fresh ``SessionView`` after every change.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from private_chat.application.dto.chat import ChatConfig
from private_chat.application.dto.principal import Principal
from private_chat.application.dto.session import Notice, SessionView
from private_chat.application.exceptions import (
    AppError,
    AuthError,
    ConflictError,
    ForbiddenError,
    MessageLimitError,
    ValidationError,
)
from private_chat.application.hold_timer import HoldTimer
from private_chat.application.policies.gating import can_client_send
from private_chat.application.ports.auth import AuthService
from private_chat.application.ports.clock import Clock, SystemClock
from private_chat.application.ports.store import DocumentSnapshot, DocumentStore, Unsubscribe
from private_chat.domain.entities.client_status import ClientStatus
from private_chat.domain.entities.message import Message
from private_chat.domain.value_objects.enums import SendAction, SendOutcome, SessionPhase
from private_chat.domain.value_objects.paths import ChatPaths
from private_chat.services import chat_service
from private_chat.services.view import to_message_view, to_status_view

logger = logging.getLogger(__name__)

OnChange = Callable[[SessionView], Awaitable[None]]

TRANSITIONS: dict[SessionPhase, frozenset[SessionPhase]] = {
    SessionPhase.UNAUTHENTICATED: frozenset({SessionPhase.AUTHENTICATING}),
    SessionPhase.AUTHENTICATING: frozenset(
        {SessionPhase.MASTER_VIEW, SessionPhase.CLIENT_VIEW, SessionPhase.UNAUTHENTICATED}
    ),
    SessionPhase.MASTER_VIEW: frozenset({SessionPhase.LOGGING_OUT}),
    SessionPhase.CLIENT_VIEW: frozenset({SessionPhase.LOGGING_OUT}),
    SessionPhase.LOGGING_OUT: frozenset({SessionPhase.UNAUTHENTICATED}),
}

_ACTIVE = (SessionPhase.MASTER_VIEW, SessionPhase.CLIENT_VIEW)


class ChatSession:
    def __init__(
        self,
        store: DocumentStore,
        auth: AuthService,
        config: ChatConfig,
        *,
        clock: Clock | None = None,
        on_change: OnChange | None = None,
    ) -> None:
        self._store = store
        self._auth = auth
        self._config = config
        self._clock = clock or SystemClock()
        self._on_change = on_change

        self.phase = SessionPhase.UNAUTHENTICATED
        self.principal: Principal | None = None
        self.paths: ChatPaths | None = None
        self.status = ClientStatus()
        self.messages: list[Message] = []
        self.holding = False
        self.notice: Notice | None = None

        self._closed = False
        self._hold_timer = HoldTimer(config.hold_seconds, self._on_hold_expired)
        self._status_unsub: Unsubscribe | None = None
        self._chat_unsub: Unsubscribe | None = None
        self._chat_subscribed = False

    @property
    def is_active(self) -> bool:
        return not self._closed and self.phase in _ACTIVE

    @property
    def hold_timer(self) -> HoldTimer:
        return self._hold_timer

    def _transition(self, phase: SessionPhase) -> None:
        if phase not in TRANSITIONS[self.phase]:
            raise ConflictError(f"Cannot move session from {self.phase} to {phase}")
        logger.debug("Session %s: %s -> %s", self._uid_for_log, self.phase, phase)
        self.phase = phase

    @property
    def _uid_for_log(self) -> str:
        return self.principal.uid if self.principal else "-"

    # -- authentication -------------------------------------------------

    async def authenticate(self, token: str) -> Principal | None:
        """Verify the token and enter the master or client view.

        A rejected token is logged and leaves the session unauthenticated.
        """
        self._transition(SessionPhase.AUTHENTICATING)
        try:
            principal = await self._auth.verify(token)
        except AuthError as exc:
            logger.error("Authentication failed: %s", exc.detail)
            self._transition(SessionPhase.UNAUTHENTICATED)
            await self._publish()
            return None

        self.principal = principal
        self.paths = self._config.paths_for(principal)
        self._transition(
            SessionPhase.CLIENT_VIEW if principal.is_client else SessionPhase.MASTER_VIEW
        )
        try:
            await self._subscribe_status()
            if principal.is_client and self.is_active:
                await self._subscribe_chat()
        except AppError as exc:
            self._show_error("Error", exc)
        await self._publish()
        return principal

    # -- subscriptions --------------------------------------------------

    async def _subscribe_status(self) -> None:
        assert self.paths is not None
        unsubscribe = await self._store.watch_document(
            self.paths.client_status_doc, self._on_status, self._on_watch_error,
        )
        if not self.is_active:
            unsubscribe()
            return
        self._status_unsub = unsubscribe

    async def _subscribe_chat(self) -> None:
        if self._chat_subscribed or self.paths is None:
            return
        self._chat_subscribed = True
        try:
            unsubscribe = await self._store.watch_query(
                chat_service.history_query(self.paths, self._config.history_limit),
                self._on_messages,
                self._on_watch_error,
            )
        except AppError:
            self._chat_subscribed = False
            raise
        if not self._chat_subscribed or not self.is_active:
            unsubscribe()
            return
        self._chat_unsub = unsubscribe

    def _unsubscribe_chat(self) -> None:
        self._chat_subscribed = False
        if self._chat_unsub is not None:
            self._chat_unsub()
            self._chat_unsub = None

    def _teardown(self) -> None:
        self._hold_timer.cancel()
        self.holding = False
        self._unsubscribe_chat()
        if self._status_unsub is not None:
            self._status_unsub()
            self._status_unsub = None

    async def _on_status(self, snapshot: DocumentSnapshot) -> None:
        if not self.is_active:
            return
        self.status = ClientStatus.from_document(snapshot.data)

        if self.phase == SessionPhase.CLIENT_VIEW and self.status.force_logout:
            logger.info("Master initiated forced logout of %s", self._uid_for_log)
            await self.logout()
            return

        if self.phase == SessionPhase.MASTER_VIEW:
            if self.status.is_logged_in:
                try:
                    await self._subscribe_chat()
                except AppError as exc:
                    self._show_error("Error", exc)
            elif self._chat_subscribed:
                self._unsubscribe_chat()
                self.messages = []
        await self._publish()

    async def _on_messages(self, snapshots: list[DocumentSnapshot]) -> None:
        if not self.is_active or not self._chat_subscribed:
            return
        self.messages = [Message.from_document(s.id, s.data or {}) for s in snapshots]
        await self._publish()

    async def _on_watch_error(self, exc: Exception) -> None:
        logger.error("Listener error for %s: %s", self._uid_for_log, exc)

    # -- user actions ---------------------------------------------------

    async def login(self) -> None:
        if not self.is_active:
            raise ForbiddenError("Not signed in")
        assert self.principal is not None and self.paths is not None
        try:
            status = await chat_service.login(
                self.principal, self.paths, self._store, self._clock,
            )
        except AppError as exc:
            self._show_error("Error", exc)
        else:
            if status is not None and self.is_active:
                self.status = status
        await self._publish()

    async def send(self, text: str) -> SendOutcome:
        if not self.is_active:
            return SendOutcome.REJECTED
        assert self.principal is not None and self.paths is not None
        try:
            result = await chat_service.send_message(
                self.principal,
                text,
                self.status,
                self.paths,
                self._store,
                self._clock,
                special_code=self._config.special_code,
                max_messages=self._config.max_messages,
            )
        except ValidationError:
            return SendOutcome.REJECTED
        except MessageLimitError as exc:
            self._show_error("Message Limit Reached", exc)
            await self._publish()
            return SendOutcome.REJECTED
        except (ConflictError, ForbiddenError) as exc:
            self._show_error("Cannot Send", exc)
            await self._publish()
            return SendOutcome.REJECTED
        except AppError as exc:
            self._show_error("Error", exc, prefix="Could not send the message: ")
            await self._publish()
            return SendOutcome.FAILED

        if self.is_active:
            self.status = result.status
        await self._publish()
        if result.action == SendAction.RESET_COUNTER:
            return SendOutcome.CODE_ACCEPTED
        return SendOutcome.SENT

    async def force_logout(self) -> None:
        if self.phase != SessionPhase.MASTER_VIEW or self._closed:
            return
        assert self.principal is not None and self.paths is not None
        try:
            await chat_service.force_logout(self.principal, self.paths, self._store)
        except AppError as exc:
            self._show_error("Error", exc, prefix="Could not log out the client: ")
        else:
            self.notice = Notice(
                title="Client Logout Initiated",
                message="The client has been asked to log out. Their chat data will be deleted.",
            )
        await self._publish()

    async def logout(self) -> None:
        """Sign out. A client also deletes its conversation and status."""
        if not self.is_active:
            return
        principal, paths = self.principal, self.paths
        assert principal is not None and paths is not None
        self._transition(SessionPhase.LOGGING_OUT)
        self._teardown()
        try:
            await chat_service.logout(principal, paths, self._store, self._auth)
        except AppError as exc:
            logger.error("Logout of %s failed: %s", principal.uid, exc.detail)
            self._show_error("Error", exc)
        finally:
            self.principal = None
            self.paths = None
            self.status = ClientStatus()
            self.messages = []
            self._transition(SessionPhase.UNAUTHENTICATED)
        await self._publish()

    async def press_hold(self) -> None:
        if self.phase != SessionPhase.CLIENT_VIEW or self._closed:
            return
        self.holding = True
        self._hold_timer.start()
        await self._publish()

    async def release_hold(self) -> None:
        if self.phase != SessionPhase.CLIENT_VIEW or self._closed:
            return
        self._hold_timer.cancel()
        self.holding = False
        await self._publish()

    async def _on_hold_expired(self) -> None:
        logger.info("Hold timer expired, logging out %s", self._uid_for_log)
        await self.logout()

    async def dismiss_notice(self) -> None:
        self.notice = None
        await self._publish()

    async def close(self) -> None:
        """Drop every subscription without signing out."""
        if self._closed:
            return
        self._teardown()
        self._closed = True
        logger.debug("Session %s closed", self._uid_for_log)

    # -- rendering ------------------------------------------------------

    def _show_error(self, title: str, exc: AppError, *, prefix: str = "") -> None:
        self.notice = Notice(title=title, message=f"{prefix}{exc.detail}")

    def view(self) -> SessionView:
        if not self.is_active or self.principal is None:
            return SessionView(phase=self.phase, notice=self.notice)

        principal = self.principal
        status = self.status
        if principal.is_client:
            can_send = can_client_send(status, self._config.max_messages)
        else:
            can_send = status.is_logged_in
        return SessionView(
            phase=self.phase,
            uid=principal.uid,
            role=principal.role,
            client_uid=self._config.client_uid,
            client_status=to_status_view(status, self._config.max_messages),
            can_send=can_send,
            show_login_notice=(
                principal.is_master and status.is_logged_in and not status.force_logout
            ),
            holding=self.holding,
            special_code=self._config.special_code if principal.is_master else None,
            messages=[to_message_view(m, principal.uid) for m in self.messages],
            notice=self.notice,
        )

    async def _publish(self) -> None:
        if self._on_change is None or self._closed:
            return
        await self._on_change(self.view())
