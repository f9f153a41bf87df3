"""Classify current chunks against a stored baseline and plan the sync.

Both functions are pure: no I/O, no clock. ``NoteSyncEngine`` feeds them the
baseline it scrolled from the store and executes the resulting plan.
"""

import logging
from collections.abc import Iterable

from note_kit.chunking.types import Chunk
from note_kit.errors import BaselineInconsistency

from .baseline import record_id_for
from .types import BaselineEntry, SyncClassification, SyncPlan

logger = logging.getLogger(__name__)

_NEEDS_UPSERT = (SyncClassification.NEW, SyncClassification.MODIFIED)


def index_baseline(
    baseline: Iterable[BaselineEntry],
) -> tuple[dict[str, BaselineEntry], list[BaselineInconsistency]]:
    """Key baseline entries by chunk id; the later of two duplicates wins."""
    by_chunk_id: dict[str, BaselineEntry] = {}
    anomalies: list[BaselineInconsistency] = []
    for entry in baseline:
        previous = by_chunk_id.get(entry.chunk_id)
        if previous is not None:
            logger.warning(
                "Duplicate chunk id %s in baseline (records %s, %s), keeping the later one",
                entry.chunk_id,
                previous.store_record_id,
                entry.store_record_id,
            )
            anomalies.append(
                BaselineInconsistency(
                    f"chunk id {entry.chunk_id} stored as {previous.store_record_id} "
                    f"and {entry.store_record_id}",
                    chunk_id=entry.chunk_id,
                )
            )
            # Re-insert so the winner also takes the later position.
            del by_chunk_id[entry.chunk_id]
        by_chunk_id[entry.chunk_id] = entry
    return by_chunk_id, anomalies


def classify_against_baseline(
    current: Iterable[Chunk], baseline: Iterable[BaselineEntry]
) -> dict[str, SyncClassification]:
    """Classify every chunk id in ``current`` and ``baseline``.

    Current ids come first in document order, then deleted ids in baseline
    order. Every id of the union gets exactly one classification.
    """
    stored, _ = index_baseline(baseline)
    classification: dict[str, SyncClassification] = {}
    for chunk in current:
        if chunk.chunk_id in classification:
            continue
        entry = stored.get(chunk.chunk_id)
        if entry is None:
            classification[chunk.chunk_id] = SyncClassification.NEW
        elif entry.stored_content_hash != chunk.meta.content_hash:
            classification[chunk.chunk_id] = SyncClassification.MODIFIED
        else:
            classification[chunk.chunk_id] = SyncClassification.UNCHANGED
    for chunk_id in stored:
        if chunk_id not in classification:
            classification[chunk_id] = SyncClassification.DELETED
    return classification


def plan_sync(
    classification: dict[str, SyncClassification],
    current: Iterable[Chunk],
    baseline: Iterable[BaselineEntry] = (),
) -> SyncPlan:
    """Turn a classification into upserts and deletes.

    Upserts only new and modified chunks. Deletes the records of deleted
    chunk ids, plus any record that an upsert or a duplicate supersedes, so
    nothing stale is left behind under the same ``original_id``.
    """
    baseline = list(baseline)
    winners, _ = index_baseline(baseline)

    to_upsert: list[Chunk] = []
    upsert_targets: dict[str, str] = {}
    seen: set[str] = set()
    for chunk in current:
        if chunk.chunk_id in seen:
            continue
        seen.add(chunk.chunk_id)
        if classification.get(chunk.chunk_id) in _NEEDS_UPSERT:
            to_upsert.append(chunk)
            upsert_targets[chunk.chunk_id] = record_id_for(
                chunk.meta.original_id, chunk.chunk_id
            )

    to_delete: list[str] = []
    for entry in baseline:
        status = classification.get(entry.chunk_id)
        if status is SyncClassification.DELETED:
            stale = True
        elif entry.chunk_id in upsert_targets:
            stale = entry.store_record_id != upsert_targets[entry.chunk_id]
        else:
            stale = winners[entry.chunk_id].store_record_id != entry.store_record_id
        if stale and entry.store_record_id not in to_delete:
            to_delete.append(entry.store_record_id)

    unchanged = [
        chunk_id
        for chunk_id, status in classification.items()
        if status is SyncClassification.UNCHANGED
    ]
    return SyncPlan(to_upsert=to_upsert, to_delete_record_ids=to_delete, unchanged_ids=unchanged)
