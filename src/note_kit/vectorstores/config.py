# src/note_kit/vectorstores/config.py

from dataclasses import dataclass
from typing import Literal

Backend = Literal["qdrant", "sqlite"]


@dataclass(frozen=True)
class VectorStoreConfig:
    backend: Backend
    vector_size: int = 1536
    collection_name: str = "notes"

    # qdrant: url for a server, path for local persistence, neither for in-memory
    url: str | None = None
    path: str | None = None
    api_key: str | None = None

    # sqlite
    db_path: str = ":memory:"
