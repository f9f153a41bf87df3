"""SQLite vector store using the sqlite-vec extension.

Meant for local, single-process use: offline note indexes and tests that need
a real store without a Qdrant server.
"""

import asyncio
import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from time import monotonic
from typing import Any

import apsw
import sqlite_vec

from note_kit.observability import names
from note_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import VectorStore
from .types import QueryResult, StoredRecord, VectorItem

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "__global__"


def _matches(metadata: Mapping[str, Any], filters: Mapping[str, Any] | None) -> bool:
    return not filters or all(metadata.get(k) == v for k, v in filters.items())


class SQLiteVectorStore(VectorStore):
    """Vector store implementation using SQLite with sqlite-vec.

    Uses a vec0 virtual table with cosine distance. Metadata filters are exact
    matches applied in Python after the SQL lookup.

    Example:
        >>> store = SQLiteVectorStore(db_path="notes.db", dimensions=1536)
        >>> await store.upsert(items=[VectorItem(id="1", vector=[...], metadata={})])
        >>> records = await store.scroll(filters={"originalId": "note-1"})
    """

    def __init__(
        self,
        db_path: str | Path = ":memory:",
        dimensions: int = 1536,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.metrics_hook = metrics_hook
        self._db_path = str(db_path)
        self._dimensions = dimensions
        self._conn: apsw.Connection | None = None

    def _get_connection(self) -> apsw.Connection:
        """Open the connection and load sqlite-vec on first use."""
        if self._conn is None:
            self._conn = apsw.Connection(self._db_path)
            self._conn.enableloadextension(True)
            self._conn.loadextension(sqlite_vec.loadable_path())
            self._conn.enableloadextension(False)
            # composite_id is "<namespace>:<item id>" so ids are unique per namespace
            self._conn.execute(
                f"""
                CREATE VIRTUAL TABLE IF NOT EXISTS vec_items USING vec0(
                    composite_id TEXT PRIMARY KEY,
                    namespace TEXT PARTITION KEY,
                    embedding float[{self._dimensions}] distance_metric=cosine,
                    +metadata TEXT,
                    +item_id TEXT
                )
                """
            )
            logger.debug("Opened sqlite-vec store at %s", self._db_path)
        return self._conn

    @staticmethod
    def _make_key(namespace: str, item_id: str) -> str:
        return f"{namespace}:{item_id}"

    def _record(self, metric: str, operation: str, start: float) -> None:
        self.metrics_hook.record_latency(metric, 1000 * (monotonic() - start))
        self.metrics_hook.increment(
            names.SQLITE_OPERATIONS_TOTAL, labels={"operation": operation}
        )

    def _delete_keys(self, conn: apsw.Connection, namespace: str, item_ids: list[str]) -> None:
        keys = [self._make_key(namespace, i) for i in item_ids]
        placeholders = ",".join("?" * len(keys))
        conn.execute(
            f"DELETE FROM vec_items WHERE namespace = ? AND composite_id IN ({placeholders})",
            (namespace, *keys),
        )

    def _rows(self, conn: apsw.Connection, namespace: str) -> list[tuple[str, dict]]:
        rows = conn.execute(
            "SELECT item_id, metadata FROM vec_items WHERE namespace = ?",
            (namespace,),
        )
        return [(item_id, json.loads(metadata)) for item_id, metadata in rows]

    async def close(self) -> None:
        if self._conn:
            await asyncio.to_thread(self._conn.close)
            self._conn = None

    async def upsert(
        self, *, namespace: str = DEFAULT_NAMESPACE, items: Iterable[VectorItem]
    ) -> None:
        """Insert or overwrite items. vec0 has no UPSERT, so delete then insert."""
        items_list = list(items)
        if not items_list:
            return

        def _upsert() -> None:
            conn = self._get_connection()
            with conn:
                self._delete_keys(conn, namespace, [item.id for item in items_list])
                for item in items_list:
                    conn.execute(
                        """
                        INSERT INTO vec_items(composite_id, namespace, embedding, metadata, item_id)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (
                            self._make_key(namespace, item.id),
                            namespace,
                            sqlite_vec.serialize_float32(item.vector),
                            json.dumps(dict(item.metadata)),
                            item.id,
                        ),
                    )

        start = monotonic()
        await asyncio.to_thread(_upsert)
        self._record(names.SQLITE_UPSERT_DURATION, "upsert", start)

    async def query(
        self,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        vector: list[float],
        top_k: int,
        filters: dict[str, Any] | None = None,
    ) -> list[QueryResult]:
        """KNN query by cosine distance; scores are mapped to 0..1, highest first."""
        if top_k < 1:
            raise ValueError("top_k must be at least 1")

        def _query() -> list[QueryResult]:
            conn = self._get_connection()
            # Over-fetch when post-filtering
            fetch_k = top_k * 3 if filters else top_k
            rows = conn.execute(
                """
                SELECT item_id, distance, metadata
                FROM vec_items
                WHERE embedding MATCH ? AND k = ? AND namespace = ?
                """,
                (sqlite_vec.serialize_float32(vector), fetch_k, namespace),
            )
            results: list[QueryResult] = []
            for item_id, distance, metadata_json in rows:
                metadata = json.loads(metadata_json)
                if not _matches(metadata, filters):
                    continue
                results.append(
                    QueryResult(id=item_id, score=1.0 - distance / 2.0, metadata=metadata)
                )
                if len(results) >= top_k:
                    break
            return results

        start = monotonic()
        results = await asyncio.to_thread(_query)
        self._record(names.SQLITE_QUERY_DURATION, "query", start)
        return results

    async def scroll(
        self,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        filters: dict[str, Any],
        limit: int = 5000,
    ) -> list[StoredRecord]:
        """Return records whose metadata matches ``filters``, in insertion order."""

        def _scroll() -> list[StoredRecord]:
            conn = self._get_connection()
            matching = [
                StoredRecord(id=item_id, payload=metadata)
                for item_id, metadata in self._rows(conn, namespace)
                if _matches(metadata, filters)
            ]
            return matching[:limit]

        start = monotonic()
        records = await asyncio.to_thread(_scroll)
        self._record(names.SQLITE_SCROLL_DURATION, "scroll", start)
        return records

    async def delete(
        self,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        ids: Iterable[str] | None = None,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Delete by ids and/or metadata filters. Returns the number deleted."""
        id_set = set(ids) if ids else set()
        if not id_set and not filters:
            raise ValueError("delete requires ids or filters")

        def _delete() -> int:
            conn = self._get_connection()
            doomed = [
                item_id
                for item_id, metadata in self._rows(conn, namespace)
                if (not id_set or item_id in id_set) and _matches(metadata, filters)
            ]
            if doomed:
                with conn:
                    self._delete_keys(conn, namespace, doomed)
            return len(doomed)

        start = monotonic()
        deleted = await asyncio.to_thread(_delete)
        self._record(names.SQLITE_DELETE_DURATION, "delete", start)
        return deleted

    async def count(self, *, namespace: str = DEFAULT_NAMESPACE) -> int:
        def _count() -> int:
            conn = self._get_connection()
            rows = list(
                conn.execute("SELECT COUNT(*) FROM vec_items WHERE namespace = ?", (namespace,))
            )
            return int(rows[0][0])

        return await asyncio.to_thread(_count)
