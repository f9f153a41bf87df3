# src/note_kit/vectorstores/factory.py

from note_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import VectorStore
from .config import VectorStoreConfig


def create_vector_store(
    config: VectorStoreConfig,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> VectorStore:
    """Create a vector store from config.

    Raises:
        ValueError: If backend is unknown.
    """
    if config.backend == "qdrant":
        from .qdrantvectorstore import QdrantVectorStore

        return QdrantVectorStore(
            url=config.url,
            path=config.path,
            api_key=config.api_key,
            collection_name=config.collection_name,
            vector_size=config.vector_size,
            metrics_hook=metrics_hook,
        )

    if config.backend == "sqlite":
        from .sqlitevectorstore import SQLiteVectorStore

        return SQLiteVectorStore(
            db_path=config.db_path,
            dimensions=config.vector_size,
            metrics_hook=metrics_hook,
        )

    raise ValueError(f"Unknown vector store backend: {config.backend}")
