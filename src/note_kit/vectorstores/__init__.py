from .base import VectorStore
from .config import VectorStoreConfig
from .factory import create_vector_store
from .qdrantvectorstore import QdrantVectorStore
from .sqlitevectorstore import SQLiteVectorStore
from .types import QueryResult, StoredRecord, VectorItem

__all__ = [
    "QdrantVectorStore",
    "SQLiteVectorStore",
    "QueryResult",
    "StoredRecord",
    "VectorItem",
    "VectorStore",
    "VectorStoreConfig",
    "create_vector_store",
]
