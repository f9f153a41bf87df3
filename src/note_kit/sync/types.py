from dataclasses import dataclass, field
from enum import Enum

from note_kit.chunking.types import Chunk
from note_kit.errors import BaselineInconsistency, SyncTransportError


class SyncClassification(str, Enum):
    NEW = "new"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"
    DELETED = "deleted"


@dataclass(frozen=True)
class BaselineEntry:
    """A chunk previously persisted for an ``original_id``."""

    chunk_id: str
    stored_content_hash: str | None
    store_record_id: str


@dataclass(frozen=True)
class SyncPlan:
    to_upsert: list[Chunk]
    to_delete_record_ids: list[str]
    unchanged_ids: list[str] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.to_upsert and not self.to_delete_record_ids


class SyncAction(str, Enum):
    UPSERT = "upsert"
    DELETE = "delete"
    SKIP = "skip"


class SyncStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    UNCHANGED = "unchanged"
    ERROR = "error"


@dataclass(frozen=True)
class SyncItemResult:
    action: SyncAction
    status: SyncStatus
    chunk_id: str | None = None
    record_id: str | None = None
    error: SyncTransportError | None = None

    @property
    def ok(self) -> bool:
        return self.status is not SyncStatus.ERROR


@dataclass
class SyncReport:
    original_id: str
    classification: dict[str, SyncClassification]
    results: list[SyncItemResult] = field(default_factory=list)
    anomalies: list[BaselineInconsistency] = field(default_factory=list)

    @property
    def failed(self) -> list[SyncItemResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    def count(self, status: SyncStatus) -> int:
        return sum(1 for r in self.results if r.status is status)
