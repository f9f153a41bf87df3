from collections.abc import Callable

import pytest

from note_kit.chunking import Chunk, ChunkNoteContext, chunk_note, scan_markdown_structure
from note_kit.sync import BaselineEntry, record_id_for

NOTE = """# Groceries

Buy fresh bread on the way home.

## Produce

Apples are on sale this week.

Remember the lemons. ^lemons
"""


@pytest.fixture
def make_chunks() -> Callable[..., list[Chunk]]:
    """Chunk markdown for a fixed note identity."""

    def _make(markdown: str = NOTE, original_id: str = "note-1") -> list[Chunk]:
        context = ChunkNoteContext(note_path="groceries.md", original_id=original_id)
        return chunk_note(
            markdown, context, cache=scan_markdown_structure(markdown), now_ms=1_000
        )

    return _make


@pytest.fixture
def baseline_of() -> Callable[[list[Chunk]], list[BaselineEntry]]:
    """The baseline a successful sync of some chunks leaves behind."""

    def _baseline(chunks: list[Chunk]) -> list[BaselineEntry]:
        return [
            BaselineEntry(
                chunk_id=c.chunk_id,
                stored_content_hash=c.meta.content_hash,
                store_record_id=record_id_for(c.meta.original_id, c.chunk_id),
            )
            for c in chunks
        ]

    return _baseline
