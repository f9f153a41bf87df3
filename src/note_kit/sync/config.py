# src/note_kit/sync/config.py

from dataclasses import dataclass


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for NoteSyncEngine.

    Immutable. Explicit. No magic defaults from environment.
    """

    namespace: str = "__global__"
    inter_call_delay: float = 0.2  # seconds between upserts, for API rate limits
    delete_batch_size: int = 100
    scroll_limit: int = 5000
    embedding_model: str | None = None

    def __post_init__(self) -> None:
        if self.inter_call_delay < 0:
            raise ValueError("inter_call_delay must be >= 0")
        if self.delete_batch_size <= 0:
            raise ValueError("delete_batch_size must be > 0")
        if self.scroll_limit <= 0:
            raise ValueError("scroll_limit must be > 0")
