from .baseline import (
    NOTE_KIT_NAMESPACE,
    baseline_from_records,
    build_chunk_payload,
    load_baseline,
    record_id_for,
)
from .config import SyncConfig
from .diff import classify_against_baseline, index_baseline, plan_sync
from .engine import NoteSyncEngine
from .types import (
    BaselineEntry,
    SyncAction,
    SyncClassification,
    SyncItemResult,
    SyncPlan,
    SyncReport,
    SyncStatus,
)

__all__ = [
    "NOTE_KIT_NAMESPACE",
    "BaselineEntry",
    "NoteSyncEngine",
    "SyncAction",
    "SyncClassification",
    "SyncConfig",
    "SyncItemResult",
    "SyncPlan",
    "SyncReport",
    "SyncStatus",
    "baseline_from_records",
    "build_chunk_payload",
    "classify_against_baseline",
    "index_baseline",
    "load_baseline",
    "plan_sync",
    "record_id_for",
]
