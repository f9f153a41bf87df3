from collections.abc import Iterable
from typing import Protocol

from note_kit.observability.base import MetricsHook

from .types import QueryResult, StoredRecord, VectorItem


class VectorStore(Protocol):
    metrics_hook: MetricsHook

    async def upsert(
        self,
        *,
        namespace: str,
        items: Iterable[VectorItem],
    ) -> None: ...

    async def query(
        self,
        *,
        namespace: str,
        vector: list[float],
        top_k: int,
        filters: dict | None = None,
    ) -> list[QueryResult]: ...

    async def delete(
        self,
        *,
        namespace: str,
        ids: Iterable[str] | None = None,
        filters: dict | None = None,
    ) -> int:
        """
        Delete vectors by id or by metadata filter.
        Returns number of rows deleted.
        """
        ...

    async def scroll(
        self,
        *,
        namespace: str,
        filters: dict,
        limit: int = 5000,
    ) -> list[StoredRecord]:
        """
        Return stored records whose payload matches every filter exactly.
        Used to load the sync baseline of a note by ``originalId``.
        """
        ...
