# src/note_kit/embeddings/factory.py

from note_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import EmbeddingsClient
from .config import EmbeddingsConfig


def create_embeddings_client(
    config: EmbeddingsConfig,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> EmbeddingsClient:
    """Create an embeddings client from config.

    Raises:
        ValueError: If provider is unknown.
    """
    if config.provider == "openai":
        from .openai import OpenAIEmbeddingsClient

        return OpenAIEmbeddingsClient(
            api_key=config.api_key or "",
            model=config.model,
            timeout=config.timeout,
            batch_size=config.batch_size,
            max_tokens=config.max_tokens,
            dimensions=config.dimensions,
            metrics_hook=metrics_hook,
        )

    if config.provider == "local":
        from .local import LocalEmbeddingsClient

        return LocalEmbeddingsClient(
            model_name=config.model,
            batch_size=config.batch_size,
            max_tokens=config.max_tokens,
            metrics_hook=metrics_hook,
        )

    raise ValueError(f"Unknown embeddings provider: {config.provider}")
