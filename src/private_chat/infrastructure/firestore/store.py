"""Cloud Firestore implementation of the document store port."""
from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator

import firebase_admin
from firebase_admin import firestore, firestore_async
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore import SERVER_TIMESTAMP

from private_chat.application.exceptions import NotFoundError, StoreError
from private_chat.application.ports.store import (
    Data,
    DocumentCallback,
    DocumentSnapshot,
    ErrorCallback,
    Query,
    QueryCallback,
    Unsubscribe,
)

logger = logging.getLogger(__name__)

_DIRECTIONS = {"asc": "ASCENDING", "desc": "DESCENDING"}


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except google_exceptions.NotFound as exc:
        raise NotFoundError(str(exc)) from exc
    except google_exceptions.GoogleAPICallError as exc:
        raise StoreError(str(exc)) from exc


def _to_snapshot(snap: Any) -> DocumentSnapshot:
    return DocumentSnapshot(
        id=snap.id,
        path=snap.reference.path,
        data=snap.to_dict() if snap.exists else None,
    )


class FirestoreWriteBatch:
    def __init__(self, client: Any) -> None:
        self._client = client
        self._batch = client.batch()

    def set(self, path: str, data: Data, *, merge: bool = False) -> None:
        self._batch.set(self._client.document(path), data, merge=merge)

    def update(self, path: str, fields: Data) -> None:
        self._batch.update(self._client.document(path), fields)

    def delete(self, path: str) -> None:
        self._batch.delete(self._client.document(path))

    async def commit(self) -> None:
        with _translate_errors():
            await self._batch.commit()


class FirestoreDocumentStore:
    """Reads and writes go through the async client.

    Listeners run on the sync client's watch threads and are handed back to
    the event loop that registered them, one delivery at a time per listener.
    """

    def __init__(self, app: firebase_admin.App) -> None:
        self._client = firestore_async.client(app)
        self._watch_client = firestore.client(app)

    async def get(self, path: str) -> DocumentSnapshot:
        with _translate_errors():
            snap = await self._client.document(path).get()
        return _to_snapshot(snap)

    async def update(self, path: str, fields: Data) -> None:
        with _translate_errors():
            await self._client.document(path).update(fields)

    async def delete(self, path: str) -> None:
        with _translate_errors():
            await self._client.document(path).delete()

    async def add(self, collection: str, data: Data) -> str:
        with _translate_errors():
            _update_time, ref = await self._client.collection(collection).add(data)
        return ref.id

    async def query(self, query: Query) -> list[DocumentSnapshot]:
        with _translate_errors():
            docs = await self._build_query(self._client, query).get()
        return [_to_snapshot(d) for d in docs]

    def new_document_path(self, collection: str) -> str:
        return self._client.collection(collection).document().path

    def batch(self) -> FirestoreWriteBatch:
        return FirestoreWriteBatch(self._client)

    def server_timestamp(self) -> Any:
        return SERVER_TIMESTAMP

    async def watch_document(
        self,
        path: str,
        on_next: DocumentCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        doc_id = path.rsplit("/", 1)[-1]

        def _convert(docs: list[Any]) -> DocumentSnapshot:
            if docs:
                return _to_snapshot(docs[0])
            return DocumentSnapshot(id=doc_id, path=path, data=None)

        handler = self._bridge(path, _convert, on_next, on_error)
        with _translate_errors():
            watch = self._watch_client.document(path).on_snapshot(handler)
        return watch.unsubscribe

    async def watch_query(
        self,
        query: Query,
        on_next: QueryCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        def _convert(docs: list[Any]) -> list[DocumentSnapshot]:
            return [_to_snapshot(d) for d in docs]

        handler = self._bridge(query.collection, _convert, on_next, on_error)
        with _translate_errors():
            watch = self._build_query(self._watch_client, query).on_snapshot(handler)
        return watch.unsubscribe

    @staticmethod
    def _build_query(client: Any, query: Query) -> Any:
        ref = client.collection(query.collection)
        if query.order_by:
            ref = ref.order_by(query.order_by, direction=_DIRECTIONS[query.direction])
        if query.limit is not None:
            ref = ref.limit(query.limit)
        return ref

    @staticmethod
    def _bridge(
        target: str,
        convert: Callable[[list[Any]], Any],
        on_next: Callable[[Any], Awaitable[None]],
        on_error: ErrorCallback | None,
    ) -> Callable[[list[Any], Any, Any], None]:
        loop = asyncio.get_running_loop()
        lock = asyncio.Lock()

        async def _deliver(value: Any) -> None:
            async with lock:
                try:
                    await on_next(value)
                except Exception:
                    logger.exception("Snapshot callback failed for %s", target)

        async def _fail(exc: Exception) -> None:
            if on_error is not None:
                await on_error(exc)

        def _on_snapshot(docs: list[Any], _changes: Any, _read_time: Any) -> None:
            try:
                value = convert(docs)
            except Exception as exc:
                logger.exception("Could not read snapshot for %s", target)
                asyncio.run_coroutine_threadsafe(_fail(exc), loop)
                return
            asyncio.run_coroutine_threadsafe(_deliver(value), loop)

        return _on_snapshot
