"""SQL-backed DocumentStoreProtocol (PostgreSQL via asyncpg, or SQLite).

Documents are rows of a single `documents` table keyed by
(collection, doc_id). The JSON body is stored as text so the same raw
SQL runs on PostgreSQL and SQLite.

Concurrency:
- Every row carries a version that increases on each committed write
- Deleted documents stay behind as tombstones (deleted = 1) so their
  version keeps increasing and a delete-then-recreate is still detected
- A commit re-reads every row the transaction read or writes, checks the
  versions, then applies version-guarded UPDATEs; a guard that matches no
  row (or a racing INSERT) means another writer won and the transaction
  function is re-run

Queries:
- An equality query on a string field is filtered in SQL with a JSON
  extraction (json_extract on SQLite, ->> on PostgreSQL); the ledger
  fields suggestionId and voterUid get expression indexes
- Other values, and other dialects, fall back to a collection scan

Error mapping:
- OperationalError / InterfaceError -> DatastoreError("unavailable")
- pool or driver timeouts -> DatastoreError("deadline-exceeded")

Usage:
    store = SqlDocumentStore(get_session_factory())
    await store.create_schema()
    await store.run_transaction(fn)
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from innovation_hub.application.ports.document_store import (
    DocumentSnapshot,
    TransactionFunction,
)
from innovation_hub.domain.errors import (
    DatastoreError,
    DatastoreErrorCode,
    TransactionConflictError,
)
from innovation_hub.domain.models.document_paths import document_path
from innovation_hub.domain.models.timestamp import resolve_server_timestamps

logger = get_logger(__name__)

T = TypeVar("T")

DocumentKey = tuple[str, str]

DEFAULT_MAX_ATTEMPTS = 5

_TIMESTAMP_TAG = "$ts"

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS documents (
        collection VARCHAR(512) NOT NULL,
        doc_id VARCHAR(512) NOT NULL,
        data TEXT,
        version INTEGER NOT NULL,
        deleted INTEGER NOT NULL DEFAULT 0,
        updated_at VARCHAR(64) NOT NULL,
        PRIMARY KEY (collection, doc_id)
    )
    """,
)

_SELECT_ROW = text("""
    SELECT data, version, deleted
    FROM documents
    WHERE collection = :collection AND doc_id = :doc_id
""")

# Ledger lookups (audience, user votes, recounts) filter on these
INDEXED_FIELDS = ("suggestionId", "voterUid")

_QUERYABLE_FIELD = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_SELECT_COLLECTION = text("""
    SELECT doc_id, data, version
    FROM documents
    WHERE collection = :collection AND deleted = 0
""")

_SELECT_COLLECTION_WHERE = """
    SELECT doc_id, data, version
    FROM documents
    WHERE collection = :collection AND deleted = 0 AND {field} = :value
"""

_INSERT_ROW = text("""
    INSERT INTO documents (collection, doc_id, data, version, deleted, updated_at)
    VALUES (:collection, :doc_id, :data, 1, :deleted, :updated_at)
""")

_UPDATE_ROW = text("""
    UPDATE documents
    SET data = :data, version = version + 1, deleted = :deleted,
        updated_at = :updated_at
    WHERE collection = :collection AND doc_id = :doc_id AND version = :version
""")

# Re-asserts a read-only row's version; takes a row lock on PostgreSQL
_TOUCH_ROW = text("""
    UPDATE documents
    SET version = version
    WHERE collection = :collection AND doc_id = :doc_id AND version = :version
""")


def json_field_expression(dialect: str, field_name: str) -> str | None:
    """SQL expression extracting a top-level string field of the body.

    Returns None when the dialect has no supported JSON operator or the
    field name is not a plain identifier.
    """
    if not _QUERYABLE_FIELD.match(field_name):
        return None
    if dialect == "sqlite":
        return f"json_extract(data, '$.{field_name}')"
    if dialect == "postgresql":
        return f"(CAST(data AS JSON) ->> '{field_name}')"
    return None


def index_statements(dialect: str) -> list[str]:
    statements = []
    for field_name in INDEXED_FIELDS:
        expression = json_field_expression(dialect, field_name)
        if expression is not None:
            statements.append(
                f"CREATE INDEX IF NOT EXISTS ix_documents_{field_name.lower()} "
                f"ON documents (collection, {expression})"
            )
    return statements


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_TIMESTAMP_TAG: value.isoformat()}
    raise TypeError(f"Cannot store {type(value).__name__} in a document")


def _decode_object(obj: dict[str, Any]) -> Any:
    if len(obj) == 1 and _TIMESTAMP_TAG in obj:
        return datetime.fromisoformat(obj[_TIMESTAMP_TAG])
    return obj


def encode_document(data: dict[str, Any]) -> str:
    """Serialize a resolved document body to JSON text."""
    return json.dumps(data, default=_encode_value, sort_keys=True)


def decode_document(raw: str | None) -> dict[str, Any] | None:
    """Deserialize JSON text written by encode_document."""
    if raw is None:
        return None
    return json.loads(raw, object_hook=_decode_object)


@dataclass(frozen=True)
class _Row:
    data: dict[str, Any] | None
    version: int
    present: bool


_MISSING_ROW = _Row(data=None, version=0, present=False)


@dataclass(frozen=True)
class _BufferedWrite:
    kind: str
    collection: str
    doc_id: str
    data: dict[str, Any] | None

    @property
    def key(self) -> DocumentKey:
        return (self.collection, self.doc_id)


class _WriteConflict(Exception):
    """A version guard failed during commit; the transaction is re-run."""


@contextmanager
def _translate_errors(operation: str, path: str | None = None) -> Iterator[None]:
    """Map SQLAlchemy failures onto DatastoreError codes."""
    try:
        yield
    except (PoolTimeoutError, TimeoutError) as exc:
        raise DatastoreError(
            DatastoreErrorCode.DEADLINE_EXCEEDED,
            f"Database timed out during {operation}: {exc}",
            path=path,
            operation=operation,
        ) from exc
    except (OperationalError, InterfaceError) as exc:
        raise DatastoreError(
            DatastoreErrorCode.UNAVAILABLE,
            f"Database unavailable during {operation}: {exc}",
            path=path,
            operation=operation,
        ) from exc
    except IntegrityError:
        raise
    except DBAPIError as exc:
        raise DatastoreError(
            DatastoreErrorCode.UNKNOWN,
            f"Database error during {operation}: {exc}",
            path=path,
            operation=operation,
        ) from exc


class SqlTransaction:
    """Transaction handle for SqlDocumentStore."""

    def __init__(self, store: SqlDocumentStore) -> None:
        self._store = store
        self.reads: dict[DocumentKey, int] = {}
        self.writes: list[_BufferedWrite] = []

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        snapshot = await self._store.get(collection, doc_id)
        self.reads.setdefault((collection, doc_id), snapshot.version)
        return snapshot

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self.writes.append(_BufferedWrite("create", collection, doc_id, dict(data)))

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self.writes.append(_BufferedWrite("set", collection, doc_id, dict(data)))

    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        self.writes.append(_BufferedWrite("update", collection, doc_id, dict(changes)))

    def delete(self, collection: str, doc_id: str) -> None:
        self.writes.append(_BufferedWrite("delete", collection, doc_id, None))


class SqlDocumentStore:
    """DocumentStoreProtocol over a SQLAlchemy async session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the store.

        Args:
            session_factory: SQLAlchemy async session factory.
            max_attempts: Transaction function runs before
                TransactionConflictError.
            clock: Source of commit instants for SERVER_TIMESTAMP.
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._session_factory = session_factory
        self._max_attempts = max_attempts
        self._clock = clock

    async def create_schema(self) -> None:
        """Create the documents table if it does not exist."""
        with _translate_errors("create_schema"):
            async with self._session_factory() as session:
                dialect = session.get_bind().dialect.name
                for statement in (*SCHEMA_STATEMENTS, *index_statements(dialect)):
                    await session.execute(text(statement))
                await session.commit()
        logger.info("document_schema_ready")

    async def run_transaction(self, fn: TransactionFunction[T]) -> T:
        for attempt in range(1, self._max_attempts + 1):
            tx = SqlTransaction(self)
            result = await fn(tx)
            if await self._commit(tx):
                return result
            logger.debug(
                "transaction_conflict",
                attempt=attempt,
                max_attempts=self._max_attempts,
            )
        raise TransactionConflictError(self._max_attempts)

    async def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        path = document_path(collection, doc_id)
        with _translate_errors("get", path):
            async with self._session_factory() as session:
                row = await self._select_row(session, (collection, doc_id))
        return DocumentSnapshot(
            collection=collection,
            doc_id=doc_id,
            data=row.data,
            version=row.version,
        )

    async def query(
        self,
        collection: str,
        field_name: str,
        value: Any,
    ) -> list[DocumentSnapshot]:
        if not isinstance(value, str):
            snapshots = await self.list_documents(collection)
        else:
            snapshots = await self._select_where(collection, field_name, value)
        # Exact match on the decoded body; the SQL filter only narrows rows
        return [
            snapshot
            for snapshot in snapshots
            if snapshot.data is not None and snapshot.data.get(field_name) == value
        ]

    async def list_documents(self, collection: str) -> list[DocumentSnapshot]:
        with _translate_errors("list", document_path(collection, "*")):
            async with self._session_factory() as session:
                result = await session.execute(
                    _SELECT_COLLECTION, {"collection": collection}
                )
                rows = result.all()
        return self._snapshots(collection, rows)

    async def _select_where(
        self, collection: str, field_name: str, value: str
    ) -> list[DocumentSnapshot]:
        with _translate_errors("query", document_path(collection, "*")):
            async with self._session_factory() as session:
                expression = json_field_expression(
                    session.get_bind().dialect.name, field_name
                )
                if expression is None:
                    result = await session.execute(
                        _SELECT_COLLECTION, {"collection": collection}
                    )
                else:
                    statement = text(
                        _SELECT_COLLECTION_WHERE.format(field=expression)
                    )
                    result = await session.execute(
                        statement, {"collection": collection, "value": value}
                    )
                rows = result.all()
        return self._snapshots(collection, rows)

    @staticmethod
    def _snapshots(collection: str, rows: Any) -> list[DocumentSnapshot]:
        snapshots = [
            DocumentSnapshot(
                collection=collection,
                doc_id=row.doc_id,
                data=decode_document(row.data),
                version=row.version,
            )
            for row in rows
        ]
        return sorted(snapshots, key=lambda snapshot: snapshot.doc_id)

    async def _select_row(self, session: AsyncSession, key: DocumentKey) -> _Row:
        result = await session.execute(
            _SELECT_ROW, {"collection": key[0], "doc_id": key[1]}
        )
        row = result.first()
        if row is None:
            return _MISSING_ROW
        data = None if row.deleted else decode_document(row.data)
        return _Row(data=data, version=row.version, present=True)

    async def _commit(self, tx: SqlTransaction) -> bool:
        """Validate and apply a transaction's writes in one SQL transaction.

        Returns:
            False on a version conflict (caller re-runs the function).
        """
        if not tx.writes and not tx.reads:
            return True

        now = self._clock()
        updated_at = now.isoformat()
        keys = list(dict.fromkeys([*tx.reads, *(write.key for write in tx.writes)]))

        try:
            with _translate_errors("commit"):
                async with self._session_factory() as session:
                    async with session.begin():
                        rows = {key: await self._select_row(session, key) for key in keys}
                        for key, version in tx.reads.items():
                            if rows[key].version != version:
                                raise _WriteConflict()

                        staged = self._stage(tx, rows, now)

                        for key, version in tx.reads.items():
                            if key in staged or not rows[key].present:
                                continue
                            await self._guarded(session, _TOUCH_ROW, key, version)

                        for key, data in staged.items():
                            row = rows[key]
                            params = {
                                "collection": key[0],
                                "doc_id": key[1],
                                "data": encode_document(data) if data is not None else None,
                                "deleted": 1 if data is None else 0,
                                "updated_at": updated_at,
                            }
                            if row.present:
                                await self._guarded(session, _UPDATE_ROW, key, row.version, params)
                            elif data is not None:
                                await session.execute(_INSERT_ROW, params)
        except (_WriteConflict, IntegrityError):
            return False
        return True

    def _stage(
        self,
        tx: SqlTransaction,
        rows: dict[DocumentKey, _Row],
        now: datetime,
    ) -> dict[DocumentKey, dict[str, Any] | None]:
        """Fold the buffered writes over the current rows."""
        staged: dict[DocumentKey, dict[str, Any] | None] = {}
        for write in tx.writes:
            path = document_path(write.collection, write.doc_id)
            existing = staged[write.key] if write.key in staged else rows[write.key].data
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
        return staged

    @staticmethod
    async def _guarded(
        session: AsyncSession,
        statement: Any,
        key: DocumentKey,
        version: int,
        params: dict[str, Any] | None = None,
    ) -> None:
        bound = dict(params or {"collection": key[0], "doc_id": key[1]})
        bound["version"] = version
        result = await session.execute(statement, bound)
        if result.rowcount != 1:
            raise _WriteConflict()
