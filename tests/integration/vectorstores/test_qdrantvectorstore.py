"""Integration tests for QdrantVectorStore against a real server (testcontainers)."""

import time
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from testcontainers.qdrant import QdrantContainer

from note_kit.sync.baseline import record_id_for
from note_kit.vectorstores.qdrantvectorstore import QdrantVectorStore
from note_kit.vectorstores.types import VectorItem

VECTOR_SIZE = 4


def _item(original_id: str, chunk_id: str, vector: list[float]) -> VectorItem:
    return VectorItem(
        id=record_id_for(original_id, chunk_id),
        vector=vector,
        metadata={"originalId": original_id, "chunkId": chunk_id, "contentHash": "h"},
    )


@pytest.fixture(scope="session")
def qdrant_url() -> Generator[str, None, None]:
    """Start a Qdrant container and return its URL."""
    with QdrantContainer("qdrant/qdrant:v1.13.5") as qdrant:
        time.sleep(2)
        qdrant.get_client().get_collections()  # raises until ready
        yield f"http://{qdrant.rest_host_address}"


@pytest_asyncio.fixture
async def store(qdrant_url: str) -> AsyncGenerator[QdrantVectorStore, None]:
    """A store on a fresh collection, dropped afterwards."""
    collection_name = f"notes_{int(time.time() * 1000)}"
    store = QdrantVectorStore(
        url=qdrant_url, collection_name=collection_name, vector_size=VECTOR_SIZE
    )
    yield store
    await store._client.delete_collection(collection_name)
    await store.close()


@pytest.mark.asyncio
async def test_upsert_and_query(store: QdrantVectorStore) -> None:
    await store.upsert(
        items=[
            _item("note-a", "c1", [1.0, 0.0, 0.0, 0.0]),
            _item("note-a", "c2", [0.0, 1.0, 0.0, 0.0]),
        ]
    )

    results = await store.query(vector=[1.0, 0.0, 0.0, 0.0], top_k=2)

    assert results[0].id == record_id_for("note-a", "c1")
    assert results[0].score > 0.99
    assert "_namespace" not in results[0].metadata


@pytest.mark.asyncio
async def test_scroll_returns_all_records_of_a_note(store: QdrantVectorStore) -> None:
    """Scroll pages through more records than a single page holds."""
    await store.upsert(
        items=[_item("note-a", f"c{i}", [1.0, float(i), 0.0, 0.0]) for i in range(300)]
        + [_item("note-b", "other", [0.0, 0.0, 1.0, 0.0])]
    )

    records = await store.scroll(filters={"originalId": "note-a"})

    assert len(records) == 300
    assert {r.payload["chunkId"] for r in records} == {f"c{i}" for i in range(300)}


@pytest.mark.asyncio
async def test_upsert_same_record_id_overwrites(store: QdrantVectorStore) -> None:
    await store.upsert(items=[_item("note-a", "c1", [1.0, 0.0, 0.0, 0.0])])
    await store.upsert(items=[_item("note-a", "c1", [0.0, 1.0, 0.0, 0.0])])

    assert len(await store.scroll(filters={"originalId": "note-a"})) == 1


@pytest.mark.asyncio
async def test_delete_by_ids_and_filters(store: QdrantVectorStore) -> None:
    await store.upsert(
        items=[
            _item("note-a", "c1", [1.0, 0.0, 0.0, 0.0]),
            _item("note-a", "c2", [0.0, 1.0, 0.0, 0.0]),
            _item("note-b", "c3", [0.0, 0.0, 1.0, 0.0]),
        ]
    )

    assert await store.delete(ids=[record_id_for("note-a", "c1")]) == 1
    assert await store.delete(filters={"originalId": "note-b"}) == 1

    [remaining] = await store.scroll(filters={"originalId": "note-a"})
    assert remaining.payload["chunkId"] == "c2"


@pytest.mark.asyncio
async def test_namespace_isolation(store: QdrantVectorStore) -> None:
    await store.upsert(namespace="ns1", items=[_item("note-a", "c1", [1.0, 0.0, 0.0, 0.0])])
    await store.upsert(namespace="ns2", items=[_item("note-a", "c2", [1.0, 0.0, 0.0, 0.0])])

    records = await store.scroll(namespace="ns1", filters={"originalId": "note-a"})

    assert [r.payload["chunkId"] for r in records] == ["c1"]
