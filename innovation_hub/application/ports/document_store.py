"""Document store port.

This module defines the contract for the hierarchical document database
the hub persists into. Documents live in named collections and are
addressed by "<collection>/<doc_id>" paths; sub-collections are just
longer collection names (see domain.models.document_paths).

Transaction semantics:
- Reads inside a transaction record the version of each document read
- Writes are buffered and applied together at commit, or not at all
- At commit, if any document read has changed version since it was read,
  the whole transaction function is re-run against fresh state
- After the store's attempt budget is exhausted the store raises
  TransactionConflictError (code "aborted")
- SERVER_TIMESTAMP values in written data are replaced with the commit
  instant

Because the function may run several times, it must not have side effects
outside the transaction handle: publish events and send messages only
after run_transaction returns.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from innovation_hub.domain.models.document_paths import document_path

T = TypeVar("T")


@dataclass(frozen=True)
class DocumentSnapshot:
    """A point-in-time read of one document.

    Attributes:
        collection: Collection the document lives in.
        doc_id: Document ID within the collection.
        data: Document fields, or None if the document does not exist.
        version: Store version of the document (0 when it does not exist).
    """

    collection: str
    doc_id: str
    data: dict[str, Any] | None
    version: int = 0

    @property
    def exists(self) -> bool:
        return self.data is not None

    @property
    def path(self) -> str:
        return document_path(self.collection, self.doc_id)

    def get(self, field_name: str, default: Any = None) -> Any:
        """Read one field, returning default when absent or not found."""
        if self.data is None:
            return default
        return self.data.get(field_name, default)


class TransactionProtocol(Protocol):
    """Handle passed to a transaction function.

    Reads are awaited and recorded for conflict detection. Writes are
    buffered; nothing is visible to other callers until commit.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """Read a document inside the transaction.

        Args:
            collection: Collection name.
            doc_id: Document ID.

        Returns:
            Snapshot of the document (exists=False when absent).

        Raises:
            DatastoreError: If the read fails.
        """
        ...

    @abstractmethod
    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Buffer creation of a new document.

        The commit fails with code "already-exists" if the document exists.
        """
        ...

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Buffer a full overwrite (create or replace) of a document."""
        ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        """Buffer a field merge into an existing document.

        The commit fails with code "not-found" if the document is missing.
        """
        ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Buffer deletion of a document. Deleting a missing one is a no-op."""
        ...


TransactionFunction = Callable[[TransactionProtocol], Awaitable[T]]


class DocumentStoreProtocol(Protocol):
    """Protocol for the hub's document database.

    Implementations must guarantee that a committed transaction is
    serializable with respect to every document it read: two concurrent
    transactions that read and then write the same counter never both
    commit against the same starting value.
    """

    @abstractmethod
    async def run_transaction(self, fn: TransactionFunction[T]) -> T:
        """Run fn atomically, re-running it on write conflicts.

        Args:
            fn: Async function receiving a TransactionProtocol handle.

        Returns:
            Whatever fn returned on the attempt that committed.

        Raises:
            TransactionConflictError: Conflicts persisted past the budget.
            DatastoreError: Store failure (unavailable, permission-denied...).
            Exception: Anything fn raises aborts the transaction unchanged.
        """
        ...

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """Read a single document outside any transaction."""
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        field_name: str,
        value: Any,
    ) -> list[DocumentSnapshot]:
        """Return every document in collection whose field equals value.

        Args:
            collection: Collection to scan.
            field_name: Top-level field to compare.
            value: Value to match (string comparison for scalar fields).

        Returns:
            Matching snapshots, ordered by document ID.
        """
        ...

    @abstractmethod
    async def list_documents(self, collection: str) -> list[DocumentSnapshot]:
        """Return every document in a collection, ordered by document ID."""
        ...
