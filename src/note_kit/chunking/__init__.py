from .cache import (
    HeadingPathResolver,
    StructuralCache,
    load_cache,
    normalize_regions,
    resolve_heading_path,
)
from .chunker import chunk_note
from .grouping import group_short_list_items
from .identity import build_embedding_text, extract_block_id, to_hash
from .parser import build_blocks, should_ignore_block
from .scanner import scan_markdown_structure
from .splitting import split_long_paragraphs
from .types import (
    BlockType,
    Chunk,
    ChunkNoteContext,
    ChunkOptions,
    ChunkPayloadMeta,
    ChunkType,
    ParsedBlock,
    Position,
    Span,
)

__all__ = [
    "BlockType",
    "Chunk",
    "ChunkNoteContext",
    "ChunkOptions",
    "ChunkPayloadMeta",
    "ChunkType",
    "HeadingPathResolver",
    "ParsedBlock",
    "Position",
    "Span",
    "StructuralCache",
    "build_blocks",
    "build_embedding_text",
    "chunk_note",
    "extract_block_id",
    "group_short_list_items",
    "load_cache",
    "normalize_regions",
    "resolve_heading_path",
    "scan_markdown_structure",
    "should_ignore_block",
    "split_long_paragraphs",
    "to_hash",
]
