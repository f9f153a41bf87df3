import asyncio
import logging
from collections.abc import Sequence
from time import monotonic

from note_kit.chunking.types import Chunk
from note_kit.embeddings.base import EmbeddingsClient
from note_kit.errors import SyncTransportError
from note_kit.observability import names
from note_kit.observability.base import MetricsHook, NoOpMetricsHook
from note_kit.vectorstores.base import VectorStore
from note_kit.vectorstores.types import VectorItem

from .baseline import build_chunk_payload, load_baseline, record_id_for
from .config import SyncConfig
from .diff import classify_against_baseline, index_baseline, plan_sync
from .types import (
    BaselineEntry,
    SyncAction,
    SyncClassification,
    SyncItemResult,
    SyncPlan,
    SyncReport,
    SyncStatus,
)

logger = logging.getLogger(__name__)


class NoteSyncEngine:
    """Keeps a vector store in step with the chunks of one note at a time.

    Unchanged chunks cost nothing; new and modified chunks are embedded and
    upserted one by one, and records of deleted chunks are removed in
    batches. Failures are reported per item on the ``SyncReport``.

    Concurrent syncs of the same ``original_id`` must be serialized by the
    caller.
    """

    def __init__(
        self,
        embeddings: EmbeddingsClient,
        store: VectorStore,
        config: SyncConfig = SyncConfig(),
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.embeddings = embeddings
        self.store = store
        self.config = config
        self.metrics_hook = metrics_hook

    async def load_baseline(self, original_id: str) -> list[BaselineEntry]:
        return await load_baseline(
            self.store,
            original_id,
            namespace=self.config.namespace,
            limit=self.config.scroll_limit,
        )

    async def sync_note(
        self,
        chunks: Sequence[Chunk],
        original_id: str,
        baseline: Sequence[BaselineEntry] | None = None,
        *,
        dry_run: bool = False,
    ) -> SyncReport:
        """Classify ``chunks`` against the stored baseline and apply the difference.

        Args:
            chunks: Current chunks of the note, as returned by ``chunk_note``.
            original_id: Identity of the note; every chunk must carry it.
            baseline: Previously stored entries. Loaded from the store when
                omitted.
            dry_run: Classify and plan only; make no embedding or store call.

        Returns:
            A report with the classification and one result per item.

        Raises:
            ValueError: If a chunk belongs to another ``original_id``.
            SyncTransportError: If the baseline has to be loaded and the
                store scroll fails. Nothing is embedded or written then.
        """
        foreign = [c.chunk_id for c in chunks if c.meta.original_id != original_id]
        if foreign:
            raise ValueError(
                f"{len(foreign)} chunk(s) do not belong to {original_id!r}: {foreign[:3]}"
            )

        start = monotonic()
        if baseline is None:
            if dry_run:
                baseline = []
            else:
                baseline = await self._load_baseline_or_raise(original_id)
        baseline = list(baseline)

        _, anomalies = index_baseline(baseline)
        if anomalies:
            self.metrics_hook.increment(names.SYNC_BASELINE_ANOMALIES, len(anomalies))
        classification = classify_against_baseline(chunks, baseline)
        plan = plan_sync(classification, chunks, baseline)
        for status in classification.values():
            self.metrics_hook.increment(
                names.SYNC_ITEMS_TOTAL, labels={"classification": status.value}
            )

        report = SyncReport(
            original_id=original_id, classification=classification, anomalies=anomalies
        )
        report.results.extend(
            SyncItemResult(
                action=SyncAction.SKIP,
                status=SyncStatus.UNCHANGED,
                chunk_id=chunk_id,
                record_id=record_id_for(original_id, chunk_id),
            )
            for chunk_id in plan.unchanged_ids
        )

        if dry_run:
            logger.info(
                "Dry run for %s: %d to upsert, %d to delete, %d unchanged",
                original_id,
                len(plan.to_upsert),
                len(plan.to_delete_record_ids),
                len(plan.unchanged_ids),
            )
            return report

        report.results.extend(await self._apply_upserts(plan, classification))
        owners = {entry.store_record_id: entry.chunk_id for entry in baseline}
        report.results.extend(await self._apply_deletes(plan, owners))

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.SYNC_DURATION, elapsed_ms)
        logger.info(
            "Synced %s: %d created, %d updated, %d deleted, %d unchanged, %d failed",
            original_id,
            report.count(SyncStatus.CREATED),
            report.count(SyncStatus.UPDATED),
            report.count(SyncStatus.DELETED),
            report.count(SyncStatus.UNCHANGED),
            len(report.failed),
        )
        return report

    async def _load_baseline_or_raise(self, original_id: str) -> list[BaselineEntry]:
        try:
            return await self.load_baseline(original_id)
        except Exception as exc:
            logger.error("Loading baseline for %s failed: %s", original_id, exc)
            self.metrics_hook.increment(names.SYNC_ERRORS_TOTAL, labels={"operation": "scroll"})
            raise SyncTransportError(
                f"scroll failed for note {original_id}: {exc}", operation="scroll"
            ) from exc

    async def _apply_upserts(
        self, plan: SyncPlan, classification: dict[str, SyncClassification]
    ) -> list[SyncItemResult]:
        results: list[SyncItemResult] = []
        for position, chunk in enumerate(plan.to_upsert):
            if position and self.config.inter_call_delay:
                await asyncio.sleep(self.config.inter_call_delay)
            record_id = record_id_for(chunk.meta.original_id, chunk.chunk_id)
            results.append(await self._upsert_one(chunk, record_id, classification))
        return results

    async def _upsert_one(
        self,
        chunk: Chunk,
        record_id: str,
        classification: dict[str, SyncClassification],
    ) -> SyncItemResult:
        operation = "embed"
        try:
            [embedding] = await self.embeddings.embed([chunk.content_for_embedding])
            operation = "upsert"
            item = VectorItem(
                id=record_id,
                vector=embedding.vector,
                metadata=build_chunk_payload(chunk, embedding, self.config.embedding_model),
            )
            await self.store.upsert(namespace=self.config.namespace, items=[item])
        except Exception as exc:
            error = SyncTransportError(
                f"{operation} failed for chunk {chunk.chunk_id}: {exc}",
                operation=operation,
                chunk_id=chunk.chunk_id,
                record_id=record_id,
            )
            error.__cause__ = exc
            logger.error("%s", error)
            self.metrics_hook.increment(
                names.SYNC_ERRORS_TOTAL, labels={"operation": operation}
            )
            return SyncItemResult(
                action=SyncAction.UPSERT,
                status=SyncStatus.ERROR,
                chunk_id=chunk.chunk_id,
                record_id=record_id,
                error=error,
            )

        logger.debug("Upserted chunk %s as %s", chunk.chunk_id, record_id)
        status = (
            SyncStatus.CREATED
            if classification.get(chunk.chunk_id) is SyncClassification.NEW
            else SyncStatus.UPDATED
        )
        return SyncItemResult(
            action=SyncAction.UPSERT,
            status=status,
            chunk_id=chunk.chunk_id,
            record_id=record_id,
        )

    async def _apply_deletes(
        self, plan: SyncPlan, owners: dict[str, str]
    ) -> list[SyncItemResult]:
        results: list[SyncItemResult] = []
        ids = plan.to_delete_record_ids
        size = self.config.delete_batch_size
        for offset in range(0, len(ids), size):
            batch = ids[offset : offset + size]
            try:
                await self.store.delete(namespace=self.config.namespace, ids=batch)
            except Exception as exc:
                self.metrics_hook.increment(
                    names.SYNC_ERRORS_TOTAL, labels={"operation": "delete"}
                )
                logger.error("Deleting %d records failed: %s", len(batch), exc)
                for record_id in batch:
                    error = SyncTransportError(
                        f"delete failed for record {record_id}: {exc}",
                        operation="delete",
                        chunk_id=owners.get(record_id),
                        record_id=record_id,
                    )
                    error.__cause__ = exc
                    results.append(
                        SyncItemResult(
                            action=SyncAction.DELETE,
                            status=SyncStatus.ERROR,
                            chunk_id=owners.get(record_id),
                            record_id=record_id,
                            error=error,
                        )
                    )
                continue
            logger.debug("Deleted %d records", len(batch))
            results.extend(
                SyncItemResult(
                    action=SyncAction.DELETE,
                    status=SyncStatus.DELETED,
                    chunk_id=owners.get(record_id),
                    record_id=record_id,
                )
                for record_id in batch
            )
        return results
