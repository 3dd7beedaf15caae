"""Port for the hosted real-time document store.

Paths are slash-separated: collections have an odd number of segments,
documents an even number. Ordering, fan-out and batch atomicity are the
store's responsibility.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal, Protocol

Data = dict[str, Any]


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    id: str
    path: str
    data: Data | None


@dataclass(frozen=True, slots=True)
class Query:
    collection: str
    order_by: str | None = None
    direction: Literal["asc", "desc"] = "asc"
    limit: int | None = None


Unsubscribe = Callable[[], None]
DocumentCallback = Callable[[DocumentSnapshot], Awaitable[None]]
QueryCallback = Callable[[list[DocumentSnapshot]], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]


class WriteBatch(Protocol):
    def set(self, path: str, data: Data, *, merge: bool = False) -> None: ...
    def update(self, path: str, fields: Data) -> None: ...
    def delete(self, path: str) -> None: ...

    async def commit(self) -> None:
        """Apply every staged write atomically, or none of them."""
        ...


class DocumentStore(Protocol):
    async def get(self, path: str) -> DocumentSnapshot: ...

    async def update(self, path: str, fields: Data) -> None:
        """Partial update. Raises NotFoundError when the document is missing."""
        ...

    async def delete(self, path: str) -> None: ...

    async def add(self, collection: str, data: Data) -> str:
        """Insert with an auto-generated id and return that id."""
        ...

    async def query(self, query: Query) -> list[DocumentSnapshot]: ...

    def new_document_path(self, collection: str) -> str: ...
    def batch(self) -> WriteBatch: ...
    def server_timestamp(self) -> Any: ...

    async def watch_document(
        self,
        path: str,
        on_next: DocumentCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe: ...

    async def watch_query(
        self,
        query: Query,
        on_next: QueryCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe: ...
