"""Structural cache adapter.

A structural cache describes a markdown document the way an editor's
metadata cache does: typed sections, list items and headings, each with
line/offset positions into the exact document text. This module validates a
cache (given as models or as the host's JSON mapping), normalizes it into
offset-sorted regions and resolves heading paths for line numbers.
"""

import bisect
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from note_kit.errors import MalformedStructure

from .types import Span

logger = logging.getLogger(__name__)

# Region types consumed for heading state only, never emitted as blocks.
CONTEXT_ONLY_REGIONS = frozenset({"heading", "yaml", "comment"})


class CachePosition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    line: int = Field(ge=0)
    offset: int = Field(ge=0)
    col: int | None = None


class CacheSpan(BaseModel):
    model_config = ConfigDict(extra="ignore")

    start: CachePosition
    end: CachePosition

    @model_validator(mode="after")
    def _ordered(self) -> "CacheSpan":
        if self.end.offset < self.start.offset:
            raise ValueError("span ends before it starts")
        return self

    def to_span(self) -> Span:
        return Span.of(self.start.line, self.start.offset, self.end.line, self.end.offset)


class CacheRegion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    position: CacheSpan


class CacheListItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    position: CacheSpan
    task: Any = None


class CacheHeading(BaseModel):
    model_config = ConfigDict(extra="ignore")

    heading: str
    level: int = Field(ge=1, le=6)
    position: CacheSpan


class StructuralCache(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    sections: list[CacheRegion] = Field(default_factory=list)
    list_items: list[CacheListItem] = Field(default_factory=list, alias="listItems")
    headings: list[CacheHeading] = Field(default_factory=list)
    frontmatter: dict[str, Any] | None = None

    @property
    def is_empty(self) -> bool:
        return not self.sections


def _validate_entries(model: type[BaseModel], raw: Any, kind: str) -> list:
    if not isinstance(raw, Sequence) or isinstance(raw, str):
        return []
    valid = []
    for index, entry in enumerate(raw):
        try:
            valid.append(model.model_validate(entry))
        except ValidationError as exc:
            logger.warning(
                "Dropping malformed %s entry #%d: %s", kind, index, exc.errors()[0]["msg"]
            )
    return valid


def load_cache(cache: StructuralCache | Mapping[str, Any] | None) -> StructuralCache:
    """Validate a cache, dropping malformed entries one by one.

    Never raises: ``None`` or a non-mapping value yields an empty cache.
    """
    if cache is None:
        return StructuralCache()
    if isinstance(cache, StructuralCache):
        return cache
    if not isinstance(cache, Mapping):
        logger.warning("Ignoring structural cache of type %s", type(cache).__name__)
        return StructuralCache()

    frontmatter = cache.get("frontmatter")
    return StructuralCache(
        sections=_validate_entries(CacheRegion, cache.get("sections"), "section"),
        listItems=_validate_entries(
            CacheListItem, cache.get("listItems", cache.get("list_items")), "list item"
        ),
        headings=_validate_entries(CacheHeading, cache.get("headings"), "heading"),
        frontmatter=frontmatter if isinstance(frontmatter, dict) else None,
    )


@dataclass(frozen=True)
class Region:
    type: str
    span: Span


def clamp_span(span: CacheSpan, text_length: int) -> Span:
    """Clamp a span to the document, raising if nothing is left of it."""
    start = min(span.start.offset, text_length)
    end = min(span.end.offset, text_length)
    if start >= end:
        raise MalformedStructure(
            f"span {span.start.offset}..{span.end.offset} lies outside a "
            f"document of length {text_length}"
        )
    return Span.of(span.start.line, start, span.end.line, end)


def normalize_regions(cache: StructuralCache, text_length: int) -> list[Region]:
    """Return emit-able regions sorted by start offset.

    Heading, yaml and comment regions are left out. Regions that do not fit
    the document are clamped, or skipped when nothing of them remains.
    """
    regions: list[Region] = []
    for section in sorted(cache.sections, key=lambda s: s.position.start.offset):
        if section.type in CONTEXT_ONLY_REGIONS:
            continue
        try:
            regions.append(Region(section.type, clamp_span(section.position, text_length)))
        except MalformedStructure as exc:
            logger.warning("Skipping %s region: %s", section.type, exc)
    return regions


def sorted_list_items(cache: StructuralCache) -> list[CacheListItem]:
    return sorted(cache.list_items, key=lambda li: li.position.start.offset)


def sorted_headings(cache: StructuralCache) -> list[CacheHeading]:
    return sorted(cache.headings, key=lambda h: h.position.start.line)


def _push(stack: list[str], heading: CacheHeading) -> None:
    # A level-L heading replaces everything at depth >= L. Skipped levels
    # (an H3 straight under an H1) do not leave empty slots behind.
    del stack[heading.level - 1 :]
    stack.append(heading.heading.strip())


def resolve_heading_path(headings: Sequence[CacheHeading], line: int) -> list[str]:
    """Return the heading titles enclosing ``line``.

    ``headings`` must be sorted by line. Pure: replays every heading at or
    above ``line``.
    """
    stop = bisect.bisect_right([h.position.start.line for h in headings], line)
    stack: list[str] = []
    for heading in headings[:stop]:
        _push(stack, heading)
    return stack


class HeadingPathResolver:
    """Forward-only cursor over sorted headings.

    Monotonic calls cost amortized O(1). A call with a line before the last
    one rebuilds the stack from the start, which is O(n) for that call but
    returns the same answer as ``resolve_heading_path``.
    """

    def __init__(self, headings: Sequence[CacheHeading]) -> None:
        self._headings = list(headings)
        self._stack: list[str] = []
        self._cursor = 0
        self._last_line = -1

    def __call__(self, line: int) -> tuple[str, ...]:
        if line < self._last_line:
            logger.debug("Heading lookup went backwards (%d < %d), rescanning", line, self._last_line)
            self._stack = []
            self._cursor = 0
        while (
            self._cursor < len(self._headings)
            and self._headings[self._cursor].position.start.line <= line
        ):
            _push(self._stack, self._headings[self._cursor])
            self._cursor += 1
        self._last_line = line
        return tuple(self._stack)
