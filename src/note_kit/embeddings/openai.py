import asyncio
import logging
from time import monotonic
from typing import Any

from openai import NOT_GIVEN, AsyncOpenAI, OpenAIError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from note_kit.chunking.text import sha256
from note_kit.observability import names
from note_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import Embedding, EmbeddingsClient
from .windowing import plan_windows, regroup

logger = logging.getLogger(__name__)


class OpenAIEmbeddingsClient(EmbeddingsClient):
    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        timeout: float = 10,
        batch_size: int = 100,
        max_tokens: int = 8000,
        dimensions: int | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ):
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        self._model = model
        self._batch_size = batch_size
        self._max_tokens = max_tokens
        self._dimensions = dimensions
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized OpenAIEmbeddingsClient with model=%s, timeout=%s, batch_size=%s",
            model,
            timeout,
            batch_size,
        )

    @property
    def model(self) -> str:
        return self._model

    async def embed(self, texts: list[str]) -> list[Embedding]:
        if not texts:
            logger.debug("Empty input, returning empty list")
            return []

        start = monotonic()
        windows, counts = plan_windows(texts, self._max_tokens)
        if len(windows) > len(texts):
            logger.info(
                "Windowed %d oversized texts into %d inputs",
                sum(1 for c in counts if c > 1),
                len(windows),
            )
            self.metrics_hook.increment(
                names.EMBEDDINGS_WINDOWED_TOTAL, sum(1 for c in counts if c > 1)
            )

        batches = [
            windows[i : i + self._batch_size]
            for i in range(0, len(windows), self._batch_size)
        ]
        logger.debug("Processing %d batches concurrently", len(batches))
        try:
            responses = await asyncio.gather(
                *[self._embed_batch(batch) for batch in batches]
            )
        except OpenAIError:
            self.metrics_hook.increment(
                names.EMBEDDINGS_ERRORS_TOTAL, labels={"backend": "openai"}
            )
            raise

        vectors = [data.embedding for response in responses for data in response.data]
        embeddings = [
            Embedding(vector=vector, content_hash=sha256(text), chunk_count=count)
            for text, (vector, count) in zip(texts, regroup(vectors, counts))
        ]

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.EMBEDDINGS_DURATION, elapsed_ms, labels={"backend": "openai"}
        )
        self.metrics_hook.increment(
            names.EMBEDDINGS_REQUESTS_TOTAL, labels={"backend": "openai"}
        )
        logger.info("Successfully embedded %d texts", len(embeddings))
        return embeddings

    async def _embed_batch(self, batch: list[str]) -> Any:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(3),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(OpenAIError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                return await self._client.embeddings.create(
                    model=self._model,
                    input=batch,
                    dimensions=self._dimensions or NOT_GIVEN,
                )
