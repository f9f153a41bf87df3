# src/note_kit/embeddings/local.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from time import monotonic

from sentence_transformers import SentenceTransformer

from note_kit.chunking.text import sha256
from note_kit.observability import names
from note_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import Embedding, EmbeddingsClient
from .windowing import plan_windows, regroup

logger = logging.getLogger(__name__)


class LocalEmbeddingsClient(EmbeddingsClient):
    """
    Local embedding client using sentence-transformers.

    - batching is internal
    - oversized texts are windowed and averaged like the OpenAI client
    - encoding runs in a worker thread
    """

    def __init__(
        self,
        model_name: str,
        batch_size: int = 32,
        max_tokens: int = 512,
        normalize: bool = False,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self._model = SentenceTransformer(model_name)
        self._model_name = model_name
        self._batch_size = batch_size
        self._max_tokens = max_tokens
        self._normalize = normalize
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized LocalEmbeddingsClient with model=%s, batch_size=%s, normalize=%s",
            model_name,
            batch_size,
            normalize,
        )

    @property
    def model(self) -> str:
        return self._model_name

    async def embed(self, texts: list[str]) -> list[Embedding]:
        if not texts:
            logger.debug("Empty input, returning empty list")
            return []

        start = monotonic()
        windows, counts = plan_windows(texts, self._max_tokens)
        logger.info("Embedding %d texts in batches of %d", len(texts), self._batch_size)
        vectors: list[list[float]] = []

        for batch in _batch_iter(windows, self._batch_size):
            logger.debug("Processing batch with %d texts", len(batch))
            encoded = await asyncio.to_thread(
                self._model.encode,
                batch,
                convert_to_numpy=True,
                normalize_embeddings=self._normalize,
                show_progress_bar=False,
            )
            vectors.extend(v.tolist() for v in encoded)

        embeddings = [
            Embedding(vector=vector, content_hash=sha256(text), chunk_count=count)
            for text, (vector, count) in zip(texts, regroup(vectors, counts))
        ]

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.EMBEDDINGS_DURATION, elapsed_ms, labels={"backend": "local"}
        )
        self.metrics_hook.increment(
            names.EMBEDDINGS_REQUESTS_TOTAL, labels={"backend": "local"}
        )
        logger.info("Successfully embedded %d texts", len(embeddings))
        return embeddings


def _batch_iter(items: list[str], batch_size: int) -> Iterable[list[str]]:
    for i in range(0, len(items), batch_size):
        yield items[i : i + batch_size]
