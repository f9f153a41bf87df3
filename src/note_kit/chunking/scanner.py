"""Line-based structure provider.

Builds a ``StructuralCache`` straight from markdown text, for callers that do
not have an editor metadata cache at hand (batch jobs, tests). It recognizes
frontmatter, fenced code, pipe tables, ATX headings, blockquotes, lists and
blank-line separated paragraphs. Lines are 0-based; offsets are string
indices into the original text.
"""

import re

from .cache import (
    CacheHeading,
    CacheListItem,
    CachePosition,
    CacheRegion,
    CacheSpan,
    StructuralCache,
)
from .text import parse_frontmatter

_FENCE = re.compile(r"^(`{3,}|~{3,})")
_TABLE_ROW = re.compile(r"^\|.*\|\s*$")
_HEADING = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
_QUOTE = re.compile(r"^>\s?")
LIST_MARKER = re.compile(r"^(\s*)([-*+]\s+|\d+[.)]\s+)")


def _span(start_line: int, start_offset: int, end_line: int, end_offset: int) -> CacheSpan:
    return CacheSpan(
        start=CachePosition(line=start_line, offset=start_offset),
        end=CachePosition(line=end_line, offset=end_offset),
    )


def scan_markdown_structure(markdown: str) -> StructuralCache:
    lines = markdown.split("\n")
    starts = [0]
    for line in lines[:-1]:
        starts.append(starts[-1] + len(line) + 1)

    def line_end(i: int) -> int:
        return starts[i] + len(lines[i])

    sections: list[CacheRegion] = []
    headings: list[CacheHeading] = []
    list_items: list[CacheListItem] = []
    i = 0

    if lines and lines[0].strip() == "---":
        j = 1
        while j < len(lines) and lines[j].strip() != "---":
            j += 1
        if j < len(lines):
            sections.append(CacheRegion(type="yaml", position=_span(0, 0, j, line_end(j))))
            i = j + 1

    while i < len(lines):
        line = lines[i]

        fence = _FENCE.match(line)
        if fence:
            marker = fence.group(1)
            k = i + 1
            while k < len(lines) and not lines[k].startswith(marker):
                k += 1
            # An unclosed fence runs to the end of the document.
            last = min(k, len(lines) - 1)
            sections.append(
                CacheRegion(type="code", position=_span(i, starts[i], last, line_end(last)))
            )
            i = last + 1
            continue

        if _TABLE_ROW.match(line):
            k = i + 1
            while k < len(lines) and _TABLE_ROW.match(lines[k]):
                k += 1
            sections.append(
                CacheRegion(type="table", position=_span(i, starts[i], k - 1, line_end(k - 1)))
            )
            i = k
            continue

        heading = _HEADING.match(line)
        if heading:
            span = _span(i, starts[i], i, line_end(i))
            sections.append(CacheRegion(type="heading", position=span))
            headings.append(
                CacheHeading(heading=heading.group(2), level=len(heading.group(1)), position=span)
            )
            i += 1
            continue

        if _QUOTE.match(line):
            k = i + 1
            while k < len(lines) and _QUOTE.match(lines[k]):
                k += 1
            sections.append(
                CacheRegion(
                    type="blockquote", position=_span(i, starts[i], k - 1, line_end(k - 1))
                )
            )
            i = k
            continue

        if LIST_MARKER.match(line):
            k = i
            while k < len(lines) and LIST_MARKER.match(lines[k]):
                list_items.append(
                    CacheListItem(position=_span(k, starts[k], k, line_end(k)))
                )
                k += 1
            sections.append(
                CacheRegion(type="list", position=_span(i, starts[i], k - 1, line_end(k - 1)))
            )
            i = k
            continue

        if line.strip():
            k = i + 1
            while (
                k < len(lines)
                and lines[k].strip()
                and not _FENCE.match(lines[k])
                and not _HEADING.match(lines[k])
                and not LIST_MARKER.match(lines[k])
                and not _QUOTE.match(lines[k])
                and not _TABLE_ROW.match(lines[k])
            ):
                k += 1
            sections.append(
                CacheRegion(
                    type="paragraph", position=_span(i, starts[i], k - 1, line_end(k - 1))
                )
            )
            i = k
            continue

        i += 1

    return StructuralCache(
        sections=sections,
        list_items=list_items,
        headings=headings,
        frontmatter=parse_frontmatter(markdown) or None,
    )
