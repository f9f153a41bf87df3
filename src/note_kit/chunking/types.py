from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any


class BlockType(str, Enum):
    """Discrete content block categories.

    - PARAGRAPH: free-form text paragraph
    - LIST_ITEM: single list item (ordered or unordered)
    - LIST_GROUP: short sibling list items merged into one block
    - CODE: fenced code block, fences included
    - TABLE: pipe table
    - QUOTE: blockquote, markers included
    """

    PARAGRAPH = "paragraph"
    LIST_ITEM = "list_item"
    LIST_GROUP = "list_group"
    CODE = "code"
    TABLE = "table"
    QUOTE = "quote"


ChunkType = BlockType


@dataclass(frozen=True)
class Position:
    line: int
    offset: int


@dataclass(frozen=True)
class Span:
    start: Position
    end: Position

    @classmethod
    def of(cls, start_line: int, start_offset: int, end_line: int, end_offset: int) -> "Span":
        return cls(Position(start_line, start_offset), Position(end_line, end_offset))


@dataclass(frozen=True)
class ParsedBlock:
    type: BlockType
    text: str
    heading_path: tuple[str, ...]
    span: Span
    list_depth: int | None = None
    parent_item_text: str | None = None
    item_index: int | None = None
    item_index_range: tuple[int, int] | None = None


# camelCase keys accepted in option mappings coming from host settings
_OPTION_ALIASES = {
    "longParagraphWordThreshold": "long_paragraph_word_threshold",
    "listShortCharThreshold": "list_short_char_threshold",
    "listGroupMin": "list_group_min",
    "listGroupMax": "list_group_max",
    "maxChunksSoft": "max_chunks_soft",
}


@dataclass(frozen=True)
class ChunkOptions:
    """Tuning parameters for chunk size and list grouping.

    Immutable. Explicit. No magic defaults from environment.
    """

    long_paragraph_word_threshold: int = 300
    list_short_char_threshold: int = 120
    list_group_min: int = 3
    list_group_max: int = 7
    max_chunks_soft: int = 50

    def __post_init__(self) -> None:
        for f in fields(self):
            if getattr(self, f.name) <= 0:
                raise ValueError(f"{f.name} must be > 0")
        if self.list_group_min > self.list_group_max:
            raise ValueError("list_group_min must be <= list_group_max")

    def merged(self, **overrides: int) -> "ChunkOptions":
        return replace(self, **overrides)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> "ChunkOptions":
        """Build options from a settings mapping, ignoring unknown and ``None`` keys."""
        if not values:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, int] = {}
        for key, value in values.items():
            name = _OPTION_ALIASES.get(key, key)
            if name in known and value is not None:
                kwargs[name] = int(value)
        return cls(**kwargs)


@dataclass(frozen=True)
class ChunkNoteContext:
    note_path: str
    original_id: str | None
    frontmatter: Mapping[str, Any] | None = None
    tags: list[str] | None = None
    aliases: list[str] | None = None


@dataclass(frozen=True)
class ChunkPayloadMeta:
    original_id: str
    chunk_id: str
    note_hash: str
    content_hash: str
    chunk_type: ChunkType
    chunk_index: int
    section: str
    headings_path: tuple[str, ...]
    document_path: str
    tags: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()
    list_depth: int | None = None
    item_index: int | None = None
    item_index_range: tuple[int, int] | None = None
    parent_item_text: str | None = None
    prev_chunk_id: str | None = None
    next_chunk_id: str | None = None
    created_at_ts: int | None = None
    updated_at_ts: int | None = None
    language: str | None = None
    content_type: str = "markdown_note"

    def to_payload(self) -> dict[str, Any]:
        """Render the camelCase payload stored next to the vector.

        ``None`` fields are omitted, except the sibling links which are
        always present so readers can tell the first and last chunk apart.
        """
        payload: dict[str, Any] = {
            "originalId": self.original_id,
            "chunkId": self.chunk_id,
            "noteHash": self.note_hash,
            "contentHash": self.content_hash,
            "contentType": self.content_type,
            "chunkType": self.chunk_type.value,
            "chunkIndex": self.chunk_index,
            "section": self.section,
            "headingsPath": list(self.headings_path),
            "prevChunkId": self.prev_chunk_id,
            "nextChunkId": self.next_chunk_id,
            "documentPath": self.document_path,
            "tags": list(self.tags),
            "aliases": list(self.aliases),
        }
        optional = {
            "listDepth": self.list_depth,
            "itemIndex": self.item_index,
            "itemIndexRange": list(self.item_index_range) if self.item_index_range else None,
            "parentItemText": self.parent_item_text,
            "createdAtTs": self.created_at_ts,
            "updatedAtTs": self.updated_at_ts,
            "language": self.language,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        return payload


@dataclass(frozen=True)
class Chunk:
    chunk_id: str
    chunk_type: ChunkType
    headings_path: tuple[str, ...]
    section: str
    content_raw: str
    content_for_embedding: str
    meta: ChunkPayloadMeta
    span: Span
    list_depth: int | None = None
    item_index: int | None = None
    parent_item_text: str | None = None
