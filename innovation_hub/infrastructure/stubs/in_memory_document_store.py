"""In-memory stub for DocumentStoreProtocol.

This stub simulates the transactional document database, including:
- Optimistic concurrency: each document carries a version; a transaction
  whose reads went stale by commit time is re-run
- All-or-nothing commits (validated first, then applied)
- create/update preconditions (already-exists, not-found)
- SERVER_TIMESTAMP resolution at commit
- Fault injection (fail_next_commits, deny) and inspection helpers

The lock is held only while committing, never while a transaction
function runs, so unrelated transactions interleave freely. With
yield_on_read=True every read suspends once, which forces concurrent
transactions to interleave between their reads and their commit.

Reads inside a transaction see committed state only, not the
transaction's own buffered writes.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

from structlog import get_logger

from innovation_hub.application.ports.document_store import (
    DocumentSnapshot,
    TransactionFunction,
)
from innovation_hub.domain.errors import (
    DatastoreError,
    DatastoreErrorCode,
    PermissionDeniedError,
    TransactionConflictError,
)
from innovation_hub.domain.models.document_paths import document_path
from innovation_hub.domain.models.timestamp import resolve_server_timestamps

logger = get_logger(__name__)

T = TypeVar("T")

DocumentKey = tuple[str, str]

DEFAULT_MAX_ATTEMPTS = 5


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class _BufferedWrite:
    kind: str
    collection: str
    doc_id: str
    data: dict[str, Any] | None

    @property
    def key(self) -> DocumentKey:
        return (self.collection, self.doc_id)


class InMemoryTransaction:
    """Transaction handle for InMemoryDocumentStore."""

    def __init__(self, store: InMemoryDocumentStore) -> None:
        self._store = store
        self.reads: dict[DocumentKey, int] = {}
        self.writes: list[_BufferedWrite] = []

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        self._store._check_permission(collection, doc_id, "get")
        await self._store._maybe_yield()
        snapshot = self._store._snapshot(collection, doc_id)
        # The first read of a document fixes the version the commit checks
        self.reads.setdefault((collection, doc_id), snapshot.version)
        await self._store._maybe_yield()
        return snapshot

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self.writes.append(
            _BufferedWrite("create", collection, doc_id, copy.deepcopy(data))
        )

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self.writes.append(_BufferedWrite("set", collection, doc_id, copy.deepcopy(data)))

    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        self.writes.append(
            _BufferedWrite("update", collection, doc_id, copy.deepcopy(changes))
        )

    def delete(self, collection: str, doc_id: str) -> None:
        self.writes.append(_BufferedWrite("delete", collection, doc_id, None))


class InMemoryDocumentStore:
    """In-memory implementation of DocumentStoreProtocol.

    Thread-safety note: safe for concurrent asyncio tasks on one event
    loop; not safe across threads.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        yield_on_read: bool = False,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize an empty store.

        Args:
            max_attempts: Transaction function runs before giving up on
                conflicts with TransactionConflictError.
            yield_on_read: Suspend on every read to force interleavings.
            clock: Source of commit instants for SERVER_TIMESTAMP.
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._max_attempts = max_attempts
        self._yield_on_read = yield_on_read
        self._clock = clock
        self._lock = asyncio.Lock()

        self._documents: dict[DocumentKey, dict[str, Any]] = {}
        # Versions survive deletes so delete-then-recreate still conflicts
        self._versions: dict[DocumentKey, int] = {}
        self._version_counter = 0

        self._pending_failures: list[Exception] = []
        self._denied: set[tuple[str, str | None]] = set()
        self.commit_count = 0
        self.conflict_count = 0

    # DocumentStoreProtocol

    async def run_transaction(self, fn: TransactionFunction[T]) -> T:
        for attempt in range(1, self._max_attempts + 1):
            tx = InMemoryTransaction(self)
            result = await fn(tx)
            if await self._commit(tx):
                return result
            self.conflict_count += 1
            logger.debug(
                "transaction_conflict",
                attempt=attempt,
                max_attempts=self._max_attempts,
            )
        raise TransactionConflictError(self._max_attempts)

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        self._check_permission(collection, doc_id, "get")
        await self._maybe_yield()
        return self._snapshot(collection, doc_id)

    async def query(
        self,
        collection: str,
        field_name: str,
        value: Any,
    ) -> list[DocumentSnapshot]:
        self._check_permission(collection, "*", "query")
        await self._maybe_yield()
        return [
            snapshot
            for snapshot in self._collection_snapshots(collection)
            if snapshot.data is not None and snapshot.data.get(field_name) == value
        ]

    async def list_documents(self, collection: str) -> list[DocumentSnapshot]:
        self._check_permission(collection, "*", "list")
        await self._maybe_yield()
        return self._collection_snapshots(collection)

    # Commit

    async def _commit(self, tx: InMemoryTransaction) -> bool:
        """Validate and apply a transaction's writes atomically.

        Returns:
            False on a version conflict (caller re-runs the function).

        Raises:
            DatastoreError: Injected failure, permission or precondition.
        """
        async with self._lock:
            if self._pending_failures:
                raise self._pending_failures.pop(0)

            for key, version in tx.reads.items():
                if self._versions.get(key, 0) != version:
                    return False

            if not tx.writes:
                return True

            now = self._clock()
            staged: dict[DocumentKey, dict[str, Any] | None] = {}

            def current(key: DocumentKey) -> dict[str, Any] | None:
                if key in staged:
                    return staged[key]
                return self._documents.get(key)

            for write in tx.writes:
                path = document_path(write.collection, write.doc_id)
                self._check_permission(
                    write.collection, write.doc_id, write.kind, write.data
                )
                existing = current(write.key)
                if write.kind == "create":
                    if existing is not None:
                        raise DatastoreError(
                            DatastoreErrorCode.ALREADY_EXISTS,
                            f"Document already exists: {path}",
                            path=path,
                            operation="create",
                            payload=write.data,
                        )
                    staged[write.key] = resolve_server_timestamps(write.data, now)
                elif write.kind == "set":
                    staged[write.key] = resolve_server_timestamps(write.data, now)
                elif write.kind == "update":
                    if existing is None:
                        raise DatastoreError(
                            DatastoreErrorCode.NOT_FOUND,
                            f"No document to update: {path}",
                            path=path,
                            operation="update",
                            payload=write.data,
                        )
                    merged = dict(existing)
                    merged.update(resolve_server_timestamps(write.data, now))
                    staged[write.key] = merged
                else:
                    staged[write.key] = None

            for key, data in staged.items():
                self._version_counter += 1
                self._versions[key] = self._version_counter
                if data is None:
                    self._documents.pop(key, None)
                else:
                    self._documents[key] = data

            self.commit_count += 1
            return True

    # Internal helpers

    async def _maybe_yield(self) -> None:
        if self._yield_on_read:
            await asyncio.sleep(0)

    def _snapshot(self, collection: str, doc_id: str) -> DocumentSnapshot:
        key = (collection, doc_id)
        data = self._documents.get(key)
        return DocumentSnapshot(
            collection=collection,
            doc_id=doc_id,
            data=copy.deepcopy(data) if data is not None else None,
            version=self._versions.get(key, 0),
        )

    def _collection_snapshots(self, collection: str) -> list[DocumentSnapshot]:
        doc_ids = sorted(
            doc_id for (name, doc_id) in self._documents if name == collection
        )
        return [self._snapshot(collection, doc_id) for doc_id in doc_ids]

    def _check_permission(
        self,
        collection: str,
        doc_id: str,
        operation: str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        if (collection, operation) in self._denied or (collection, None) in self._denied:
            raise PermissionDeniedError(
                path=document_path(collection, doc_id),
                operation=operation,
                payload=copy.deepcopy(payload),
            )

    # Test helper methods

    def fail_next_commits(self, error: Exception, times: int = 1) -> None:
        """Make the next `times` commits raise error instead of committing.

        Args:
            error: Exception to raise (e.g. DatastoreError("unavailable")).
            times: How many consecutive commits fail.
        """
        self._pending_failures.extend([error] * times)

    def deny(self, collection: str, operation: str | None = None) -> None:
        """Reject an operation on a collection with PermissionDeniedError.

        Args:
            collection: Collection name.
            operation: get, create, set, update, delete, query or list;
                None denies everything.
        """
        self._denied.add((collection, operation))

    def allow_all(self) -> None:
        self._denied.clear()

    def seed(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Write a document directly, bypassing transactions."""
        key = (collection, doc_id)
        self._version_counter += 1
        self._versions[key] = self._version_counter
        self._documents[key] = resolve_server_timestamps(
            copy.deepcopy(data), self._clock()
        )

    def document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return a copy of a stored document, or None."""
        data = self._documents.get((collection, doc_id))
        return copy.deepcopy(data) if data is not None else None

    def documents(self, collection: str) -> dict[str, dict[str, Any]]:
        """Return copies of every document in a collection, keyed by ID."""
        return {
            doc_id: copy.deepcopy(data)
            for (name, doc_id), data in self._documents.items()
            if name == collection
        }

    def reset(self) -> None:
        """Reset all stored data and injected faults. Useful between tests."""
        self._documents.clear()
        self._versions.clear()
        self._version_counter = 0
        self._pending_failures.clear()
        self._denied.clear()
        self.commit_count = 0
        self.conflict_count = 0
