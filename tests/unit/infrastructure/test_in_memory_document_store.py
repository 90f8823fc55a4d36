"""Unit tests for InMemoryDocumentStore transactions."""

from __future__ import annotations

import asyncio

import pytest

from innovation_hub.domain.errors import (
    DatastoreError,
    DatastoreErrorCode,
    PermissionDeniedError,
    TransactionConflictError,
)
from innovation_hub.domain.models.timestamp import SERVER_TIMESTAMP
from innovation_hub.infrastructure.stubs import InMemoryDocumentStore

from conftest import FIXED_INSTANT


class TestTransactions:
    @pytest.mark.asyncio
    async def test_create_then_read(self, store) -> None:
        async def _write(tx):
            tx.create("things", "t1", {"n": 1, "at": SERVER_TIMESTAMP})

        await store.run_transaction(_write)

        snapshot = await store.get("things", "t1")
        assert snapshot.exists
        assert snapshot.data == {"n": 1, "at": FIXED_INSTANT}
        assert snapshot.version > 0
        assert store.commit_count == 1

    @pytest.mark.asyncio
    async def test_writes_invisible_until_commit(self, store) -> None:
        seen: list[bool] = []

        async def _write(tx):
            tx.set("things", "t1", {"n": 1})
            seen.append((await store.get("things", "t1")).exists)

        await store.run_transaction(_write)

        assert seen == [False]
        assert store.document("things", "t1") == {"n": 1}

    @pytest.mark.asyncio
    async def test_error_in_function_discards_writes(self, store) -> None:
        async def _write(tx):
            tx.set("things", "t1", {"n": 1})
            raise RuntimeError("abort")

        with pytest.raises(RuntimeError):
            await store.run_transaction(_write)

        assert store.document("things", "t1") is None

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, store) -> None:
        store.seed("things", "t1", {"a": 1, "b": 2})

        async def _update(tx):
            tx.update("things", "t1", {"b": 3})

        await store.run_transaction(_update)

        assert store.document("things", "t1") == {"a": 1, "b": 3}

    @pytest.mark.asyncio
    async def test_create_existing_document_fails(self, store) -> None:
        store.seed("things", "t1", {"a": 1})

        async def _create(tx):
            tx.create("things", "t1", {"a": 2})

        with pytest.raises(DatastoreError) as exc_info:
            await store.run_transaction(_create)

        assert exc_info.value.code == "already-exists"
        assert store.document("things", "t1") == {"a": 1}

    @pytest.mark.asyncio
    async def test_update_missing_document_fails(self, store) -> None:
        async def _update(tx):
            tx.update("things", "t1", {"a": 1})

        with pytest.raises(DatastoreError) as exc_info:
            await store.run_transaction(_update)

        assert exc_info.value.code == "not-found"

    @pytest.mark.asyncio
    async def test_read_only_transaction_does_not_commit(self, store) -> None:
        store.seed("things", "t1", {"a": 1})

        async def _read(tx):
            return (await tx.get("things", "t1")).get("a")

        assert await store.run_transaction(_read) == 1
        assert store.commit_count == 0


class TestConflicts:
    @pytest.mark.asyncio
    async def test_conflicting_write_reruns_function(self, store) -> None:
        store.seed("counters", "c", {"n": 0})
        runs = 0

        async def _increment(tx):
            nonlocal runs
            runs += 1
            snapshot = await tx.get("counters", "c")
            if runs == 1:
                store.seed("counters", "c", {"n": 10})
            tx.update("counters", "c", {"n": snapshot.get("n") + 1})

        await store.run_transaction(_increment)

        assert runs == 2
        assert store.document("counters", "c") == {"n": 11}
        assert store.conflict_count == 1

    @pytest.mark.asyncio
    async def test_delete_then_recreate_still_conflicts(self, store) -> None:
        store.seed("things", "t1", {"a": 1})
        runs = 0

        async def _touch(tx):
            nonlocal runs
            runs += 1
            await tx.get("things", "t1")
            if runs == 1:

                async def _delete(inner):
                    inner.delete("things", "t1")

                async def _recreate(inner):
                    inner.create("things", "t1", {"a": 1})

                await store.run_transaction(_delete)
                await store.run_transaction(_recreate)
            tx.update("things", "t1", {"b": 2})

        await store.run_transaction(_touch)

        assert runs == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self) -> None:
        store = InMemoryDocumentStore(max_attempts=3)
        store.seed("counters", "c", {"n": 0})

        async def _always_loses(tx):
            await tx.get("counters", "c")
            store.seed("counters", "c", {"n": 0})
            tx.update("counters", "c", {"n": 1})

        with pytest.raises(TransactionConflictError) as exc_info:
            await store.run_transaction(_always_loses)

        assert exc_info.value.attempts == 3
        assert store.conflict_count == 3

    @pytest.mark.asyncio
    async def test_concurrent_increments_are_not_lost(self) -> None:
        store = InMemoryDocumentStore(max_attempts=20, yield_on_read=True)
        store.seed("counters", "c", {"n": 0})

        async def _increment(tx):
            snapshot = await tx.get("counters", "c")
            tx.update("counters", "c", {"n": snapshot.get("n") + 1})

        await asyncio.gather(*(store.run_transaction(_increment) for _ in range(8)))

        assert store.document("counters", "c") == {"n": 8}

    def test_max_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            InMemoryDocumentStore(max_attempts=0)


class TestFaultInjection:
    @pytest.mark.asyncio
    async def test_injected_failure_is_raised_once(self, store) -> None:
        store.fail_next_commits(DatastoreError(DatastoreErrorCode.UNAVAILABLE))

        async def _write(tx):
            tx.set("things", "t1", {"a": 1})

        with pytest.raises(DatastoreError):
            await store.run_transaction(_write)
        await store.run_transaction(_write)

        assert store.document("things", "t1") == {"a": 1}

    @pytest.mark.asyncio
    async def test_denied_read(self, store) -> None:
        store.deny("users", "get")

        with pytest.raises(PermissionDeniedError) as exc_info:
            await store.get("users", "u1")

        assert exc_info.value.path == "users/u1"

    @pytest.mark.asyncio
    async def test_denied_write_carries_payload(self, store) -> None:
        store.deny("things")

        async def _write(tx):
            tx.set("things", "t1", {"a": 1})

        with pytest.raises(PermissionDeniedError) as exc_info:
            await store.run_transaction(_write)

        assert exc_info.value.operation == "set"
        assert exc_info.value.payload == {"a": 1}

        store.allow_all()
        await store.run_transaction(_write)


class TestQueries:
    @pytest.mark.asyncio
    async def test_query_by_field_sorted_by_id(self, store) -> None:
        store.seed("votes", "v2_s1", {"suggestionId": "s1"})
        store.seed("votes", "v1_s1", {"suggestionId": "s1"})
        store.seed("votes", "v1_s2", {"suggestionId": "s2"})

        results = await store.query("votes", "suggestionId", "s1")

        assert [snapshot.doc_id for snapshot in results] == ["v1_s1", "v2_s1"]

    @pytest.mark.asyncio
    async def test_list_documents_skips_other_collections(self, store) -> None:
        store.seed("a", "1", {})
        store.seed("b", "2", {})

        assert [s.doc_id for s in await store.list_documents("a")] == ["1"]

    def test_reset(self, store) -> None:
        store.seed("a", "1", {})
        store.deny("a")

        store.reset()

        assert store.documents("a") == {}
        assert store.commit_count == 0
