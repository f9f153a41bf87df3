from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

from note_kit.observability import InMemoryMetricsHook, names
from note_kit.vectorstores import SQLiteVectorStore, StoredRecord, VectorItem


def _chunk_item(record_id: str, vector: list[float], original_id: str, chunk_id: str) -> VectorItem:
    return VectorItem(
        id=record_id,
        vector=vector,
        metadata={"originalId": original_id, "chunkId": chunk_id, "contentHash": "h-" + chunk_id},
    )


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[SQLiteVectorStore, None]:
    store = SQLiteVectorStore(db_path=":memory:", dimensions=2)
    yield store
    await store.close()


class TestSQLiteVectorStore:
    @pytest.mark.asyncio
    async def test_upsert_and_query(self, store: SQLiteVectorStore) -> None:
        await store.upsert(
            items=[
                _chunk_item("r1", [1.0, 0.0], "note-a", "c1"),
                _chunk_item("r2", [0.0, 1.0], "note-a", "c2"),
            ]
        )

        results = await store.query(vector=[1.0, 0.0], top_k=2)

        assert [r.id for r in results] == ["r1", "r2"]
        assert results[0].score > results[1].score
        assert results[0].metadata["chunkId"] == "c1"

    @pytest.mark.asyncio
    async def test_upsert_overwrites_same_id(self, store: SQLiteVectorStore) -> None:
        """Re-sending a record id replaces the record instead of duplicating it."""
        await store.upsert(items=[_chunk_item("r1", [1.0, 0.0], "note-a", "c1")])
        await store.upsert(items=[_chunk_item("r1", [0.0, 1.0], "note-a", "c1-v2")])

        assert await store.count() == 1
        [record] = await store.scroll(filters={"originalId": "note-a"})
        assert record.payload["chunkId"] == "c1-v2"

    @pytest.mark.asyncio
    async def test_query_with_filters(self, store: SQLiteVectorStore) -> None:
        await store.upsert(
            items=[
                _chunk_item("r1", [1.0, 0.0], "note-a", "c1"),
                _chunk_item("r2", [1.0, 0.1], "note-b", "c2"),
            ]
        )

        results = await store.query(vector=[1.0, 0.0], top_k=10, filters={"originalId": "note-b"})

        assert [r.id for r in results] == ["r2"]

    @pytest.mark.asyncio
    async def test_query_rejects_zero_top_k(self, store: SQLiteVectorStore) -> None:
        with pytest.raises(ValueError):
            await store.query(vector=[1.0, 0.0], top_k=0)

    @pytest.mark.asyncio
    async def test_scroll_by_original_id(self, store: SQLiteVectorStore) -> None:
        """Scroll returns every record of one note with its payload."""
        await store.upsert(
            items=[
                _chunk_item("r1", [1.0, 0.0], "note-a", "c1"),
                _chunk_item("r2", [0.0, 1.0], "note-a", "c2"),
                _chunk_item("r3", [1.0, 1.0], "note-b", "c3"),
            ]
        )

        records = await store.scroll(filters={"originalId": "note-a"})

        assert {r.id for r in records} == {"r1", "r2"}
        assert all(isinstance(r, StoredRecord) for r in records)
        assert {r.payload["contentHash"] for r in records} == {"h-c1", "h-c2"}

    @pytest.mark.asyncio
    async def test_scroll_respects_limit(self, store: SQLiteVectorStore) -> None:
        await store.upsert(
            items=[_chunk_item(f"r{i}", [1.0, float(i)], "note-a", f"c{i}") for i in range(5)]
        )

        assert len(await store.scroll(filters={"originalId": "note-a"}, limit=3)) == 3

    @pytest.mark.asyncio
    async def test_delete_by_ids(self, store: SQLiteVectorStore) -> None:
        await store.upsert(
            items=[
                _chunk_item("r1", [1.0, 0.0], "note-a", "c1"),
                _chunk_item("r2", [0.0, 1.0], "note-a", "c2"),
                _chunk_item("r3", [1.0, 1.0], "note-a", "c3"),
            ]
        )

        assert await store.delete(ids=["r1", "r3", "missing"]) == 2
        assert [r.id for r in await store.scroll(filters={"originalId": "note-a"})] == ["r2"]

    @pytest.mark.asyncio
    async def test_delete_by_filters(self, store: SQLiteVectorStore) -> None:
        await store.upsert(
            items=[
                _chunk_item("r1", [1.0, 0.0], "note-a", "c1"),
                _chunk_item("r2", [0.0, 1.0], "note-b", "c2"),
            ]
        )

        assert await store.delete(filters={"originalId": "note-a"}) == 1
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_delete_requires_ids_or_filters(self, store: SQLiteVectorStore) -> None:
        with pytest.raises(ValueError, match="delete requires ids or filters"):
            await store.delete()

    @pytest.mark.asyncio
    async def test_namespaces_are_isolated(self, store: SQLiteVectorStore) -> None:
        await store.upsert(namespace="ns1", items=[_chunk_item("r1", [1.0, 0.0], "note-a", "c1")])
        await store.upsert(namespace="ns2", items=[_chunk_item("r1", [0.0, 1.0], "note-a", "c1")])

        await store.delete(namespace="ns1", ids=["r1"])

        assert await store.count(namespace="ns1") == 0
        assert await store.count(namespace="ns2") == 1
        assert await store.scroll(namespace="ns1", filters={"originalId": "note-a"}) == []

    @pytest.mark.asyncio
    async def test_empty_upsert(self, store: SQLiteVectorStore) -> None:
        await store.upsert(items=[])
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_operations_record_metrics(self) -> None:
        metrics = InMemoryMetricsHook()
        store = SQLiteVectorStore(dimensions=2, metrics_hook=metrics)
        await store.upsert(items=[_chunk_item("r1", [1.0, 0.0], "note-a", "c1")])
        await store.scroll(filters={"originalId": "note-a"})
        await store.close()

        assert metrics.count(names.SQLITE_OPERATIONS_TOTAL, {"operation": "upsert"}) == 1
        assert metrics.count(names.SQLITE_OPERATIONS_TOTAL, {"operation": "scroll"}) == 1
        assert (names.SQLITE_SCROLL_DURATION, ()) in metrics.latencies


@pytest.mark.asyncio
async def test_persistent_storage(tmp_path: Path) -> None:
    """Records survive closing and reopening the database file."""
    db_path = tmp_path / "notes.db"

    first = SQLiteVectorStore(db_path=db_path, dimensions=2)
    await first.upsert(items=[_chunk_item("r1", [1.0, 0.0], "note-a", "c1")])
    await first.close()

    second = SQLiteVectorStore(db_path=db_path, dimensions=2)
    [record] = await second.scroll(filters={"originalId": "note-a"})
    assert record.id == "r1"
    await second.close()
