import uuid
from unittest.mock import AsyncMock

import pytest

from note_kit.embeddings import Embedding
from note_kit.sync import (
    BaselineEntry,
    baseline_from_records,
    build_chunk_payload,
    load_baseline,
    record_id_for,
)
from note_kit.vectorstores import StoredRecord


class TestRecordId:
    def test_record_id_is_a_stable_uuid(self) -> None:
        record_id = record_id_for("note-1", "^abc")

        assert uuid.UUID(record_id).version == 5
        assert record_id == record_id_for("note-1", "^abc")

    def test_record_id_depends_on_note_and_chunk(self) -> None:
        assert record_id_for("note-1", "c") != record_id_for("note-2", "c")
        assert record_id_for("note-1", "c") != record_id_for("note-1", "d")


class TestBuildChunkPayload:
    def test_payload_carries_meta_content_and_embedding_info(self, make_chunks) -> None:
        [first, *_] = make_chunks()

        payload = build_chunk_payload(
            first, Embedding(vector=[0.1, 0.2, 0.3], chunk_count=2), "text-embedding-3-small"
        )

        assert payload["chunkId"] == first.chunk_id
        assert payload["contentHash"] == first.meta.content_hash
        assert payload["content"] == first.content_raw
        assert payload["contentForEmbedding"] == first.content_for_embedding
        assert payload["embeddingModel"] == "text-embedding-3-small"
        assert payload["dimensions"] == 3
        assert payload["embeddingChunkCount"] == 2
        assert "vectorizedAt" in payload

    def test_payload_without_embedding(self, make_chunks) -> None:
        [first, *_] = make_chunks()

        payload = build_chunk_payload(first)

        assert "dimensions" not in payload
        assert "embeddingModel" not in payload


class TestBaselineFromRecords:
    def test_records_become_entries(self) -> None:
        records = [
            StoredRecord(id="r1", payload={"chunkId": "c1", "contentHash": "h1"}),
            StoredRecord(id="r2", payload={"chunkId": "c2"}),
            StoredRecord(id="r3", payload={"content": "no chunk id"}),
        ]

        assert baseline_from_records(records) == [
            BaselineEntry(chunk_id="c1", stored_content_hash="h1", store_record_id="r1"),
            BaselineEntry(chunk_id="c2", stored_content_hash=None, store_record_id="r2"),
        ]

    @pytest.mark.asyncio
    async def test_load_baseline_scrolls_by_original_id(self) -> None:
        store = AsyncMock()
        store.scroll.return_value = [
            StoredRecord(id="r1", payload={"chunkId": "c1", "contentHash": "h1"})
        ]

        baseline = await load_baseline(store, "note-1", namespace="ns", limit=10)

        store.scroll.assert_awaited_once_with(
            namespace="ns", filters={"originalId": "note-1"}, limit=10
        )
        assert [e.chunk_id for e in baseline] == ["c1"]
