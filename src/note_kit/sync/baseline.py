import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from note_kit.chunking.types import Chunk
from note_kit.embeddings.base import Embedding
from note_kit.vectorstores.base import VectorStore
from note_kit.vectorstores.types import StoredRecord

from .types import BaselineEntry

logger = logging.getLogger(__name__)

# Namespace for deterministic record ids; never change it, or every stored
# record id changes with it.
NOTE_KIT_NAMESPACE = uuid.UUID("6ba7b811-9dad-11d1-80b4-00c04fd430c8")


def record_id_for(original_id: str, chunk_id: str) -> str:
    """Deterministic store record id (a UUID, as Qdrant requires)."""
    return str(uuid.uuid5(NOTE_KIT_NAMESPACE, f"{original_id}#{chunk_id}"))


def build_chunk_payload(
    chunk: Chunk,
    embedding: Embedding | None = None,
    embedding_model: str | None = None,
) -> dict[str, Any]:
    payload = chunk.meta.to_payload()
    payload["content"] = chunk.content_raw
    payload["contentForEmbedding"] = chunk.content_for_embedding
    payload["vectorizedAt"] = datetime.now(timezone.utc).isoformat()
    if embedding_model:
        payload["embeddingModel"] = embedding_model
    if embedding is not None:
        payload["dimensions"] = embedding.dimensions
        if embedding.chunk_count > 1:
            payload["embeddingChunkCount"] = embedding.chunk_count
    return payload


def baseline_from_records(records: Iterable[StoredRecord]) -> list[BaselineEntry]:
    """Build baseline entries from stored records, in store order."""
    entries: list[BaselineEntry] = []
    for record in records:
        chunk_id = record.payload.get("chunkId")
        if not chunk_id:
            logger.warning("Stored record %s has no chunkId, ignoring it", record.id)
            continue
        content_hash = record.payload.get("contentHash")
        entries.append(
            BaselineEntry(
                chunk_id=str(chunk_id),
                stored_content_hash=str(content_hash) if content_hash is not None else None,
                store_record_id=record.id,
            )
        )
    return entries


async def load_baseline(
    store: VectorStore,
    original_id: str,
    *,
    namespace: str = "__global__",
    limit: int = 5000,
) -> list[BaselineEntry]:
    """Scroll every record stored for ``original_id`` and build its baseline."""
    records = await store.scroll(
        namespace=namespace, filters={"originalId": original_id}, limit=limit
    )
    if len(records) >= limit:
        logger.warning(
            "Baseline for %s hit the scroll limit of %d records", original_id, limit
        )
    return baseline_from_records(records)
