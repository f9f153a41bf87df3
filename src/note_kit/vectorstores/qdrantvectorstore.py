import logging
from collections.abc import Iterable
from time import monotonic
from typing import TypeAlias

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    HasIdCondition,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from note_kit.observability import names
from note_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import VectorStore
from .types import QueryResult, StoredRecord, VectorItem

logger = logging.getLogger(__name__)

Condition: TypeAlias = FieldCondition | HasIdCondition | Filter

DEFAULT_NAMESPACE = "__global__"

# Payload keys the sync engine filters on.
INDEXED_PAYLOAD_KEYS = ("_namespace", "originalId", "chunkId")


class QdrantVectorStore(VectorStore):
    """Vector store implementation using Qdrant."""

    def __init__(
        self,
        *,
        url: str | None = None,
        path: str | None = None,
        api_key: str | None = None,
        collection_name: str,
        vector_size: int,
        distance: Distance = Distance.COSINE,
        on_disk: bool = False,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        """
        Initialize Qdrant vector store.

        Args:
            url: Qdrant server URL. If provided, connects to remote server.
            path: Path to local Qdrant storage directory.
            api_key: API key for Qdrant Cloud (only used with url).
            collection_name: Name of the collection.
            vector_size: Dimensionality of vectors.
            distance: Distance metric (COSINE, EUCLID, DOT).
            on_disk: Whether to store vectors on disk.
            metrics_hook: Hook for recording metrics.

        Note:
            - If both url and path are None, uses in-memory mode.
            - Point IDs must be UUIDs; ``record_id_for`` produces them.
        """
        self.metrics_hook = metrics_hook

        if url:
            self._client = AsyncQdrantClient(url=url, api_key=api_key)
        elif path:
            self._client = AsyncQdrantClient(path=path)
        else:
            self._client = AsyncQdrantClient(":memory:")

        self._collection_name = collection_name
        self._vector_size = vector_size
        self._distance = distance
        self._on_disk = on_disk
        self._ready = False

    async def _ensure_collection(self) -> None:
        """Create the collection and its payload indexes if missing."""
        if self._ready:
            return
        exists = await self._client.collection_exists(self._collection_name)
        if not exists:
            logger.info(
                "Creating Qdrant collection %s (size=%d)",
                self._collection_name,
                self._vector_size,
            )
            await self._client.create_collection(
                collection_name=self._collection_name,
                vectors_config=VectorParams(
                    size=self._vector_size,
                    distance=self._distance,
                    on_disk=self._on_disk,
                ),
            )
            for key in INDEXED_PAYLOAD_KEYS:
                await self._client.create_payload_index(
                    collection_name=self._collection_name,
                    field_name=key,
                    field_schema=PayloadSchemaType.KEYWORD,
                )
        self._ready = True

    def _record(self, metric: str, operation: str, start: float) -> None:
        self.metrics_hook.record_latency(metric, 1000 * (monotonic() - start))
        self.metrics_hook.increment(
            names.QDRANT_OPERATIONS_TOTAL, labels={"operation": operation}
        )

    @staticmethod
    def _filter(
        namespace: str,
        filters: dict | None = None,
        ids: Iterable[str] | None = None,
    ) -> Filter:
        must: list[Condition] = [
            FieldCondition(key="_namespace", match=MatchValue(value=namespace))
        ]
        if ids:
            must.append(HasIdCondition(has_id=list(ids)))
        for key, value in (filters or {}).items():
            must.append(FieldCondition(key=key, match=MatchValue(value=value)))
        return Filter(must=must)

    @staticmethod
    def _strip(payload: dict | None) -> dict:
        return {k: v for k, v in (payload or {}).items() if k != "_namespace"}

    async def close(self) -> None:
        """Close the Qdrant client."""
        await self._client.close()

    async def upsert(
        self, *, namespace: str = DEFAULT_NAMESPACE, items: Iterable[VectorItem]
    ) -> None:
        """Insert or overwrite points; re-sending the same id is a no-op overwrite."""
        points = [
            PointStruct(
                id=item.id,
                vector=item.vector,
                payload={"_namespace": namespace, **dict(item.metadata)},
            )
            for item in items
        ]
        if not points:
            return

        await self._ensure_collection()
        start = monotonic()
        await self._client.upsert(
            collection_name=self._collection_name,
            wait=True,
            points=points,
        )
        self._record(names.QDRANT_UPSERT_DURATION, "upsert", start)

    async def query(
        self,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        vector: list[float],
        top_k: int,
        filters: dict | None = None,
    ) -> list[QueryResult]:
        """Return the ``top_k`` most similar points, highest score first."""
        if top_k < 1:
            raise ValueError("top_k must be at least 1")

        await self._ensure_collection()
        start = monotonic()
        results = await self._client.query_points(
            collection_name=self._collection_name,
            query=vector,
            query_filter=self._filter(namespace, filters),
            limit=top_k,
            with_payload=True,
        )
        self._record(names.QDRANT_QUERY_DURATION, "query", start)

        return [
            QueryResult(id=str(hit.id), score=hit.score, metadata=self._strip(hit.payload))
            for hit in results.points
        ]

    async def scroll(
        self,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        filters: dict,
        limit: int = 5000,
    ) -> list[StoredRecord]:
        """Page through points matching ``filters``, up to ``limit`` records."""
        await self._ensure_collection()
        start = monotonic()
        records: list[StoredRecord] = []
        offset = None
        while len(records) < limit:
            points, offset = await self._client.scroll(
                collection_name=self._collection_name,
                scroll_filter=self._filter(namespace, filters),
                limit=min(256, limit - len(records)),
                offset=offset,
                with_payload=True,
                with_vectors=False,
            )
            records.extend(
                StoredRecord(id=str(p.id), payload=self._strip(p.payload)) for p in points
            )
            if offset is None:
                break
        self._record(names.QDRANT_SCROLL_DURATION, "scroll", start)
        return records

    async def delete(
        self,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        ids: Iterable[str] | None = None,
        filters: dict | None = None,
    ) -> int:
        """
        Delete points by id and/or payload filter, always scoped to ``namespace``.

        Returns:
            Number of points matched before deletion.
        """
        id_list = list(ids) if ids else []
        if not id_list and not filters:
            raise ValueError("delete requires ids or filters")

        await self._ensure_collection()
        start = monotonic()
        selector = self._filter(namespace, filters, id_list)
        counted = await self._client.count(
            collection_name=self._collection_name,
            count_filter=selector,
            exact=True,
        )
        await self._client.delete(
            collection_name=self._collection_name,
            points_selector=FilterSelector(filter=selector),
            wait=True,
        )
        self._record(names.QDRANT_DELETE_DURATION, "delete", start)
        return int(counted.count)
