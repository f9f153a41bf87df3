# Chunking
from .chunking import (
    BlockType,
    Chunk,
    ChunkNoteContext,
    ChunkOptions,
    StructuralCache,
    chunk_note,
    scan_markdown_structure,
)

# Embeddings
from .embeddings import (
    Embedding,
    EmbeddingsClient,
    EmbeddingsConfig,
    LocalEmbeddingsClient,
    OpenAIEmbeddingsClient,
    create_embeddings_client,
)

# Errors
from .errors import (
    BaselineInconsistency,
    MalformedStructure,
    MissingDocumentIdentity,
    NoteKitError,
    SyncTransportError,
)

# Observability
from .observability import MetricsHook, NoOpMetricsHook

# Sync
from .sync import (
    BaselineEntry,
    NoteSyncEngine,
    SyncClassification,
    SyncConfig,
    SyncReport,
    classify_against_baseline,
    plan_sync,
)

# Vector stores
from .vectorstores import (
    QdrantVectorStore,
    QueryResult,
    SQLiteVectorStore,
    StoredRecord,
    VectorItem,
    VectorStore,
    VectorStoreConfig,
    create_vector_store,
)

__all__ = [
    # Chunking
    "BlockType",
    "Chunk",
    "ChunkNoteContext",
    "ChunkOptions",
    "StructuralCache",
    "chunk_note",
    "scan_markdown_structure",
    # Embeddings
    "Embedding",
    "EmbeddingsClient",
    "EmbeddingsConfig",
    "LocalEmbeddingsClient",
    "OpenAIEmbeddingsClient",
    "create_embeddings_client",
    # Errors
    "BaselineInconsistency",
    "MalformedStructure",
    "MissingDocumentIdentity",
    "NoteKitError",
    "SyncTransportError",
    # Observability
    "MetricsHook",
    "NoOpMetricsHook",
    # Sync
    "BaselineEntry",
    "NoteSyncEngine",
    "SyncClassification",
    "SyncConfig",
    "SyncReport",
    "classify_against_baseline",
    "plan_sync",
    # Vector stores
    "QdrantVectorStore",
    "QueryResult",
    "SQLiteVectorStore",
    "StoredRecord",
    "VectorItem",
    "VectorStore",
    "VectorStoreConfig",
    "create_vector_store",
]
