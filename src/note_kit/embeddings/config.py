from dataclasses import dataclass
from typing import Literal

Provider = Literal["openai", "local"]


@dataclass(frozen=True)
class EmbeddingsConfig:
    """Selects and tunes the embeddings backend used by the sync engine."""

    provider: Provider
    model: str
    timeout: float = 30.0
    batch_size: int = 100
    max_tokens: int = 8000  # per input window; longer texts are windowed and averaged
    dimensions: int | None = None  # openai text-embedding-3 models only

    api_key: str | None = None  # openai only

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")
        if self.dimensions is not None and self.dimensions <= 0:
            raise ValueError("dimensions must be > 0")
