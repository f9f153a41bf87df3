import logging
import time
from collections.abc import Mapping
from time import monotonic
from typing import Any

from note_kit.errors import MissingDocumentIdentity
from note_kit.observability import names
from note_kit.observability.base import MetricsHook, NoOpMetricsHook

from .cache import StructuralCache, load_cache
from .grouping import group_short_list_items
from .identity import build_embedding_text, extract_block_id, to_hash
from .parser import filter_blocks, parse_blocks
from .splitting import split_long_paragraphs
from .text import normalize_markdown, parse_frontmatter, sha256
from .types import Chunk, ChunkNoteContext, ChunkOptions, ChunkPayloadMeta, ParsedBlock

logger = logging.getLogger(__name__)


def _as_strings(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return []


def _coerce_context(context: ChunkNoteContext | Mapping[str, Any]) -> ChunkNoteContext:
    if isinstance(context, ChunkNoteContext):
        return context
    return ChunkNoteContext(
        note_path=context.get("notePath", context.get("note_path", "")),
        original_id=context.get("originalId", context.get("original_id")),
        frontmatter=context.get("frontmatter"),
        tags=context.get("tags"),
        aliases=context.get("aliases"),
    )


def _coerce_options(options: ChunkOptions | Mapping[str, Any] | None) -> ChunkOptions:
    if isinstance(options, ChunkOptions):
        return options
    return ChunkOptions.from_mapping(options)


def _assign_ids(blocks: list[ParsedBlock]) -> list[tuple[ParsedBlock, str, str]]:
    """Return (block, embedding text, chunk id) with ids unique within the run."""
    seen: dict[str, int] = {}
    assigned = []
    for block in blocks:
        embedding_text = build_embedding_text(
            block.heading_path, block.parent_item_text, normalize_markdown(block.text)
        )
        chunk_id = extract_block_id(block.text) or to_hash(embedding_text)
        count = seen.get(chunk_id, 0) + 1
        seen[chunk_id] = count
        if count > 1:
            logger.warning(
                "Duplicate chunk id %s at offset %d, suffixing :%d",
                chunk_id,
                block.span.start.offset,
                count,
            )
            chunk_id = f"{chunk_id}:{count}"
        assigned.append((block, embedding_text, chunk_id))
    return assigned


def chunk_note(
    markdown: str,
    context: ChunkNoteContext | Mapping[str, Any],
    options: ChunkOptions | Mapping[str, Any] | None = None,
    cache: StructuralCache | Mapping[str, Any] | None = None,
    *,
    now_ms: int | None = None,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> list[Chunk]:
    """Chunk a markdown note into ordered, content-addressed chunks.

    Args:
        markdown: The document text the cache positions refer to.
        context: Note path, stable ``original_id`` and optional
            frontmatter/tags/aliases. Accepts a mapping with camelCase keys.
        options: Chunk tuning; a mapping of overrides is accepted too.
        cache: Structural cache for exactly this text. ``None`` or an
            unusable cache degrades to one whole-document paragraph.
        now_ms: Timestamp stored as createdAtTs/updatedAtTs. Defaults to now.
        metrics_hook: Hook for recording metrics.

    Returns:
        Chunks in document order, at most ``options.max_chunks_soft``.

    Raises:
        MissingDocumentIdentity: If the context has no ``original_id``.
    """
    start = monotonic()
    ctx = _coerce_context(context)
    if not ctx.original_id:
        raise MissingDocumentIdentity(ctx.note_path)
    opts = _coerce_options(options)
    structure = load_cache(cache)

    if structure.is_empty:
        metrics_hook.increment(names.CHUNKING_FALLBACKS_TOTAL)
    parsed = parse_blocks(markdown, structure)
    blocks = filter_blocks(parsed)
    metrics_hook.increment(names.CHUNKING_BLOCKS_DROPPED, len(parsed) - len(blocks))

    blocks = split_long_paragraphs(group_short_list_items(blocks, opts), opts)
    if len(blocks) > opts.max_chunks_soft:
        logger.info(
            "Note %s produced %d chunks, keeping the first %d",
            ctx.note_path,
            len(blocks),
            opts.max_chunks_soft,
        )
        metrics_hook.increment(
            names.CHUNKING_CHUNKS_TRUNCATED, len(blocks) - opts.max_chunks_soft
        )
        blocks = blocks[: opts.max_chunks_soft]

    frontmatter = dict(
        ctx.frontmatter
        if ctx.frontmatter is not None
        else structure.frontmatter or parse_frontmatter(markdown)
    )
    tags = tuple(ctx.tags if ctx.tags is not None else _as_strings(frontmatter.get("tags")))
    aliases = tuple(
        ctx.aliases if ctx.aliases is not None else _as_strings(frontmatter.get("aliases"))
    )
    language = frontmatter.get("language")
    note_hash = sha256(normalize_markdown(markdown))
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)

    assigned = _assign_ids(blocks)
    ids = [chunk_id for _, _, chunk_id in assigned]
    chunks: list[Chunk] = []
    for index, (block, embedding_text, chunk_id) in enumerate(assigned):
        section = block.heading_path[-1] if block.heading_path else ""
        meta = ChunkPayloadMeta(
            original_id=ctx.original_id,
            chunk_id=chunk_id,
            note_hash=note_hash,
            content_hash=sha256(block.text),
            chunk_type=block.type,
            chunk_index=index,
            section=section,
            headings_path=block.heading_path,
            document_path=ctx.note_path,
            tags=tags,
            aliases=aliases,
            list_depth=block.list_depth,
            item_index=block.item_index,
            item_index_range=block.item_index_range,
            parent_item_text=block.parent_item_text,
            prev_chunk_id=ids[index - 1] if index > 0 else None,
            next_chunk_id=ids[index + 1] if index + 1 < len(ids) else None,
            created_at_ts=timestamp,
            updated_at_ts=timestamp,
            language=str(language) if language is not None else None,
        )
        chunks.append(
            Chunk(
                chunk_id=chunk_id,
                chunk_type=block.type,
                headings_path=block.heading_path,
                section=section,
                content_raw=block.text,
                content_for_embedding=embedding_text,
                meta=meta,
                span=block.span,
                list_depth=block.list_depth,
                item_index=block.item_index,
                parent_item_text=block.parent_item_text,
            )
        )

    elapsed_ms = 1000 * (monotonic() - start)
    metrics_hook.record_latency(names.CHUNKING_DURATION, elapsed_ms)
    metrics_hook.increment(names.CHUNKING_CHUNKS_CREATED, len(chunks))
    logger.debug("Chunked %s into %d chunks", ctx.note_path, len(chunks))
    return chunks
