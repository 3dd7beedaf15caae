"""Shared test fixtures."""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable

import pytest

from private_chat.application.dto.chat import ChatConfig
from private_chat.application.dto.principal import Principal, SignIn
from private_chat.application.exceptions import AuthError, NotFoundError
from private_chat.application.policies.gating import resolve_role
from private_chat.application.ports.store import Data, DocumentSnapshot, Query
from private_chat.domain.value_objects.enums import Role
from private_chat.domain.value_objects.paths import ChatPaths

CLIENT_UID = "client_user_12345"
MASTER_UID = "master-1"
APP_ID = "test-app"

_UNSET = object()


@dataclass
class TickingClock:
    """Advances one second on every reading so timestamps stay ordered."""

    current: datetime = field(default_factory=lambda: datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc))

    def now(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@dataclass
class _Watch:
    target: str | Query
    on_next: Callable[[Any], Awaitable[None]]
    active: bool = True
    last: Any = _UNSET


class FakeWriteBatch:
    def __init__(self, store: FakeDocumentStore) -> None:
        self._store = store
        self._ops: list[tuple[str, str, Data, bool]] = []

    def set(self, path: str, data: Data, *, merge: bool = False) -> None:
        self._ops.append(("set", path, dict(data), merge))

    def update(self, path: str, fields: Data) -> None:
        self._ops.append(("update", path, dict(fields), False))

    def delete(self, path: str) -> None:
        self._ops.append(("delete", path, {}, False))

    async def commit(self) -> None:
        self._store._check_available()
        for op, path, _data, _merge in self._ops:
            if op == "update" and path not in self._store.docs:
                raise NotFoundError(f"No document to update: {path}")
        for op, path, data, merge in self._ops:
            self._store._apply(op, path, data, merge)
        self._store.commits += 1
        await self._store._notify()


class FakeDocumentStore:
    """In-memory stand-in for the hosted store, with live listeners.

    Listeners get the current state right away and after every committed
    write, but only when what they watch actually changed.
    """

    def __init__(self) -> None:
        self.docs: dict[str, Data] = {}
        self.writes: list[tuple[str, str]] = []
        self.commits = 0
        self.fail_with: Exception | None = None
        self.callback_errors: list[Exception] = []
        self._watches: list[_Watch] = []
        self._ids = itertools.count(1)

    # -- helpers used by tests ------------------------------------------

    def docs_in(self, collection: str) -> dict[str, Data]:
        return {p: d for p, d in self.docs.items() if p.rsplit("/", 1)[0] == collection}

    @property
    def listener_count(self) -> int:
        return sum(1 for w in self._watches if w.active)

    # -- port -----------------------------------------------------------

    async def get(self, path: str) -> DocumentSnapshot:
        return self._snapshot(path)

    async def update(self, path: str, fields: Data) -> None:
        self._check_available()
        if path not in self.docs:
            raise NotFoundError(f"No document to update: {path}")
        self._apply("update", path, dict(fields), False)
        self.commits += 1
        await self._notify()

    async def delete(self, path: str) -> None:
        self._check_available()
        self._apply("delete", path, {}, False)
        self.commits += 1
        await self._notify()

    async def add(self, collection: str, data: Data) -> str:
        self._check_available()
        path = self.new_document_path(collection)
        self._apply("set", path, dict(data), False)
        self.commits += 1
        await self._notify()
        return path.rsplit("/", 1)[-1]

    async def query(self, query: Query) -> list[DocumentSnapshot]:
        self._check_available()
        return self._run_query(query)

    def new_document_path(self, collection: str) -> str:
        return f"{collection}/doc{next(self._ids):05d}"

    def batch(self) -> FakeWriteBatch:
        return FakeWriteBatch(self)

    def server_timestamp(self) -> Any:
        return datetime.now(timezone.utc)

    async def watch_document(self, path, on_next, on_error=None):
        return await self._watch(path, on_next)

    async def watch_query(self, query, on_next, on_error=None):
        return await self._watch(query, on_next)

    # -- internals ------------------------------------------------------

    def _check_available(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _apply(self, op: str, path: str, data: Data, merge: bool) -> None:
        self.writes.append((op, path))
        if op == "delete":
            self.docs.pop(path, None)
        elif op == "update" or merge:
            self.docs[path] = {**self.docs.get(path, {}), **data}
        else:
            self.docs[path] = data

    def _snapshot(self, path: str) -> DocumentSnapshot:
        data = self.docs.get(path)
        return DocumentSnapshot(
            id=path.rsplit("/", 1)[-1],
            path=path,
            data=dict(data) if data is not None else None,
        )

    def _run_query(self, query: Query) -> list[DocumentSnapshot]:
        snapshots = [self._snapshot(p) for p in self.docs_in(query.collection)]
        if query.order_by:
            key = query.order_by
            snapshots.sort(
                key=lambda s: (s.data.get(key) is None, s.data.get(key) or 0, s.id),
                reverse=query.direction == "desc",
            )
        if query.limit is not None:
            snapshots = snapshots[:query.limit]
        return snapshots

    def _current(self, watch: _Watch) -> Any:
        if isinstance(watch.target, Query):
            return self._run_query(watch.target)
        return self._snapshot(watch.target)

    async def _watch(self, target, on_next):
        watch = _Watch(target=target, on_next=on_next)
        self._watches.append(watch)

        def _unsubscribe() -> None:
            watch.active = False

        await self._deliver(watch)
        return _unsubscribe

    async def _deliver(self, watch: _Watch) -> None:
        value = self._current(watch)
        if value == watch.last:
            return
        watch.last = value
        try:
            await watch.on_next(value)
        except Exception as exc:
            self.callback_errors.append(exc)

    async def _notify(self) -> None:
        for watch in list(self._watches):
            if watch.active:
                await self._deliver(watch)


@dataclass
class FakeAuthService:
    """Tokens look like ``token:<uid>``."""

    client_uid: str = CLIENT_UID
    signed_out: list[str] = field(default_factory=list)
    _anon: itertools.count = field(default_factory=lambda: itertools.count(1))

    async def sign_in_anonymously(self) -> SignIn:
        uid = f"anon-{next(self._anon)}"
        return SignIn(uid=uid, token=f"token:{uid}")

    async def verify(self, token: str) -> Principal:
        if not token.startswith("token:"):
            raise AuthError("Invalid token")
        uid = token.split(":", 1)[1]
        return Principal(uid=uid, role=resolve_role(uid, self.client_uid))

    async def sign_out(self, uid: str) -> None:
        self.signed_out.append(uid)


def make_paths(master_uid: str = MASTER_UID) -> ChatPaths:
    return ChatPaths(app_id=APP_ID, master_uid=master_uid, client_uid=CLIENT_UID)


def seed_status(store: FakeDocumentStore, paths: ChatPaths, **fields: Any) -> None:
    doc = {"isLoggedIn": True, "msgCount": 0, "forceLogout": False}
    doc.update(fields)
    store.docs[paths.client_status_doc] = doc


def seed_messages(store: FakeDocumentStore, paths: ChatPaths, count: int, sender: str = MASTER_UID) -> None:
    base = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
    for i in range(count):
        path = store.new_document_path(paths.messages_collection)
        store.docs[path] = {
            "text": f"old {i}",
            "senderId": sender,
            "timestamp": base + timedelta(minutes=i),
        }


@pytest.fixture
def store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def auth() -> FakeAuthService:
    return FakeAuthService()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def chat_config() -> ChatConfig:
    return ChatConfig(
        app_id=APP_ID,
        client_uid=CLIENT_UID,
        master_uid=MASTER_UID,
        hold_seconds=0.05,
    )


@pytest.fixture
def paths() -> ChatPaths:
    return make_paths()


@pytest.fixture
def master_principal() -> Principal:
    return Principal(uid=MASTER_UID, role=Role.MASTER)


@pytest.fixture
def client_principal() -> Principal:
    return Principal(uid=CLIENT_UID, role=Role.CLIENT)
