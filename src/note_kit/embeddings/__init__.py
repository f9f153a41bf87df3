from .base import Embedding, EmbeddingsClient
from .config import EmbeddingsConfig
from .factory import create_embeddings_client
from .local import LocalEmbeddingsClient
from .openai import OpenAIEmbeddingsClient

__all__ = [
    "Embedding",
    "EmbeddingsClient",
    "EmbeddingsConfig",
    "LocalEmbeddingsClient",
    "OpenAIEmbeddingsClient",
    "create_embeddings_client",
]
