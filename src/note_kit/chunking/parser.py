"""Block parser.

Walks the normalized regions of a structural cache, slices the original text
by offsets and attaches heading path and list context to every block. Blocks
without indexable signal (embeds, rules, callouts, bare links, bare block
references) are dropped afterwards.
"""

import logging
import re

from note_kit.errors import MalformedStructure

from .cache import (
    CONTEXT_ONLY_REGIONS,
    CacheListItem,
    HeadingPathResolver,
    Region,
    StructuralCache,
    clamp_span,
    normalize_regions,
    sorted_headings,
    sorted_list_items,
)
from .scanner import LIST_MARKER
from .text import strip_frontmatter
from .types import BlockType, ParsedBlock, Span

logger = logging.getLogger(__name__)

_VERBATIM_TYPES = {
    "code": BlockType.CODE,
    "table": BlockType.TABLE,
    "blockquote": BlockType.QUOTE,
    "quote": BlockType.QUOTE,
}

_EMBED_ONLY = re.compile(r"^!\[\[[^\]\n]*\]\]$")
_RULE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")
_CALLOUT_HEADER = re.compile(r"^>\s*\[![\w-]+\][+-]?")
_LINK = r"(?:!?\[\[[^\]\n]+\]\]|\[[^\]\n]*\]\([^)\n]*\))"
_LINKS_ONLY = re.compile(rf"^(?:[-*+•,;|\s]*{_LINK})+[-*+•,;|.\s]*$")
_BLOCK_REF_ONLY = re.compile(r"^\^\(?[A-Za-z0-9_-]{3,}\)?$")


def should_ignore_block(text: str) -> bool:
    """Return True for blocks that carry nothing worth embedding."""
    trimmed = text.strip()
    if not trimmed:
        return True
    if _EMBED_ONLY.match(trimmed) or _RULE.match(trimmed):
        return True
    if _CALLOUT_HEADER.match(trimmed):
        return True
    if _LINKS_ONLY.match(trimmed) or _BLOCK_REF_ONLY.match(trimmed):
        return True
    return False


def _whole_document_block(markdown: str) -> list[ParsedBlock]:
    body = strip_frontmatter(markdown)
    start = len(markdown) - len(body)
    text = body.strip()
    if not text:
        return []
    lead = len(body) - len(body.lstrip())
    begin = start + lead
    end = begin + len(text)
    span = Span.of(
        markdown.count("\n", 0, begin), begin, markdown.count("\n", 0, end), end
    )
    return [ParsedBlock(type=BlockType.PARAGRAPH, text=text, heading_path=(), span=span)]


def _line_text(lines: list[str], line: int) -> str:
    return lines[line] if 0 <= line < len(lines) else ""


def _list_blocks(
    markdown: str,
    lines: list[str],
    region: Region,
    items: list[CacheListItem],
    cursor: int,
    resolve: HeadingPathResolver,
) -> tuple[list[ParsedBlock], int]:
    blocks: list[ParsedBlock] = []
    parent_by_depth: list[str] = []
    index_by_depth: list[int] = []

    while cursor < len(items) and items[cursor].position.start.offset < region.span.end.offset:
        item = items[cursor]
        cursor += 1
        if item.position.start.offset < region.span.start.offset:
            continue
        try:
            span = clamp_span(item.position, len(markdown))
        except MalformedStructure as exc:
            logger.warning("Skipping list item: %s", exc)
            continue

        line_text = _line_text(lines, span.start.line).expandtabs(4)
        indent = len(line_text) - len(line_text.lstrip(" "))
        depth = indent // 2
        raw = markdown[span.start.offset : span.end.offset]
        text = LIST_MARKER.sub("", raw, count=1).strip()

        # Counters deeper than this item restart; a new depth starts at 1.
        del index_by_depth[depth + 1 :]
        while len(index_by_depth) <= depth:
            index_by_depth.append(0)
        index_by_depth[depth] += 1

        parent = parent_by_depth[depth - 1] if 0 < depth <= len(parent_by_depth) else ""
        del parent_by_depth[depth:]
        parent_by_depth.extend([""] * (depth - len(parent_by_depth)))
        parent_by_depth.append(text)

        blocks.append(
            ParsedBlock(
                type=BlockType.LIST_ITEM,
                text=text,
                heading_path=resolve(span.start.line),
                span=span,
                list_depth=depth,
                parent_item_text=parent or None,
                item_index=index_by_depth[depth],
            )
        )
    return blocks, cursor


def parse_blocks(markdown: str, cache: StructuralCache) -> list[ParsedBlock]:
    """Turn a document and its structural cache into ordered, unfiltered blocks.

    Never raises. An empty cache, or one whose content regions all fail to
    fit the document, makes the whole document (minus frontmatter) a single
    paragraph block. A cache holding only headings, yaml or comments yields
    no blocks.
    """
    regions = normalize_regions(cache, len(markdown))
    if not regions:
        if cache.is_empty or any(s.type not in CONTEXT_ONLY_REGIONS for s in cache.sections):
            logger.debug("No usable regions in structural cache, using whole document")
            return _whole_document_block(markdown)
        return []

    lines = markdown.split("\n")
    items = sorted_list_items(cache)
    resolve = HeadingPathResolver(sorted_headings(cache))
    blocks: list[ParsedBlock] = []
    cursor = 0

    for region in regions:
        if region.type == "list":
            list_blocks, cursor = _list_blocks(markdown, lines, region, items, cursor, resolve)
            blocks.extend(list_blocks)
            continue

        raw = markdown[region.span.start.offset : region.span.end.offset]
        if not raw.strip():
            continue
        block_type = _VERBATIM_TYPES.get(region.type, BlockType.PARAGRAPH)
        if block_type is BlockType.PARAGRAPH and region.type != "paragraph":
            logger.debug("Treating unknown region type %r as paragraph", region.type)
        blocks.append(
            ParsedBlock(
                type=block_type,
                text=raw,
                heading_path=resolve(region.span.start.line),
                span=region.span,
            )
        )
    return blocks


def filter_blocks(blocks: list[ParsedBlock]) -> list[ParsedBlock]:
    return [b for b in blocks if not should_ignore_block(b.text)]


def build_blocks(markdown: str, cache: StructuralCache) -> list[ParsedBlock]:
    return filter_blocks(parse_blocks(markdown, cache))
