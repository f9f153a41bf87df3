from dataclasses import dataclass
from typing import Protocol

from note_kit.observability.base import MetricsHook


@dataclass(frozen=True)
class Embedding:
    vector: list[float]
    content_hash: str | None = None
    chunk_count: int = 1

    @property
    def dimensions(self) -> int:
        return len(self.vector)

    @property
    def chunked(self) -> bool:
        return self.chunk_count > 1


class EmbeddingsClient(Protocol):
    metrics_hook: MetricsHook

    async def embed(self, texts: list[str]) -> list[Embedding]: ...
