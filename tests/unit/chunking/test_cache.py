import pytest

from note_kit.chunking.cache import (
    CacheHeading,
    CacheSpan,
    HeadingPathResolver,
    StructuralCache,
    clamp_span,
    load_cache,
    normalize_regions,
    resolve_heading_path,
)
from note_kit.errors import MalformedStructure


def _span(start_line: int, start: int, end_line: int, end: int) -> dict:
    return {"start": {"line": start_line, "offset": start}, "end": {"line": end_line, "offset": end}}


def _heading(title: str, level: int, line: int) -> CacheHeading:
    return CacheHeading.model_validate(
        {"heading": title, "level": level, "position": _span(line, 0, line, 1)}
    )


class TestLoadCache:
    def test_none_is_empty(self) -> None:
        assert load_cache(None).is_empty

    def test_non_mapping_is_empty(self) -> None:
        assert load_cache(["not", "a", "cache"]).is_empty  # type: ignore[arg-type]

    def test_instances_pass_through(self) -> None:
        cache = StructuralCache()
        assert load_cache(cache) is cache

    def test_malformed_entries_are_dropped_individually(self) -> None:
        cache = load_cache(
            {
                "sections": [
                    {"type": "paragraph", "position": _span(0, 0, 0, 5)},
                    {"type": "paragraph", "position": _span(0, 9, 0, 3)},
                    {"type": "paragraph", "position": {"start": {"line": -1, "offset": 0}}},
                    "garbage",
                ],
                "listItems": [{"position": _span(1, 6, 1, 10), "task": " "}],
                "headings": [{"heading": "H", "level": 9, "position": _span(0, 0, 0, 1)}],
                "frontmatter": "not a dict",
            }
        )

        assert len(cache.sections) == 1
        assert len(cache.list_items) == 1
        assert cache.headings == []
        assert cache.frontmatter is None


class TestRegions:
    def test_clamp_span_trims_to_document(self) -> None:
        span = CacheSpan.model_validate(_span(0, 2, 3, 100))

        clamped = clamp_span(span, 10)

        assert (clamped.start.offset, clamped.end.offset) == (2, 10)

    def test_clamp_span_raises_when_nothing_is_left(self) -> None:
        span = CacheSpan.model_validate(_span(5, 50, 6, 60))

        with pytest.raises(MalformedStructure):
            clamp_span(span, 10)

    def test_normalize_sorts_and_skips_context_regions(self) -> None:
        cache = load_cache(
            {
                "sections": [
                    {"type": "paragraph", "position": _span(4, 20, 4, 30)},
                    {"type": "heading", "position": _span(0, 0, 0, 5)},
                    {"type": "yaml", "position": _span(0, 0, 0, 5)},
                    {"type": "code", "position": _span(2, 8, 3, 18)},
                    {"type": "paragraph", "position": _span(9, 90, 9, 99)},
                ]
            }
        )

        regions = normalize_regions(cache, text_length=40)

        assert [(r.type, r.span.start.offset) for r in regions] == [
            ("code", 8),
            ("paragraph", 20),
        ]


class TestHeadingPath:
    HEADINGS = [
        _heading("A", 1, 0),
        _heading("B", 2, 2),
        _heading("C", 3, 4),
        _heading("D", 2, 6),
        _heading("Deep", 4, 8),
    ]

    def test_resolve_heading_path(self) -> None:
        assert resolve_heading_path(self.HEADINGS, 0) == ["A"]
        assert resolve_heading_path(self.HEADINGS, 5) == ["A", "B", "C"]
        assert resolve_heading_path(self.HEADINGS, 7) == ["A", "D"]

    def test_before_first_heading_is_empty(self) -> None:
        assert resolve_heading_path([_heading("Late", 1, 10)], 3) == []

    def test_skipped_levels_leave_no_holes(self) -> None:
        assert resolve_heading_path(self.HEADINGS, 9) == ["A", "D", "Deep"]

    def test_resolver_matches_pure_function_in_any_order(self) -> None:
        """Backward lookups rescan instead of returning stale state."""
        resolver = HeadingPathResolver(self.HEADINGS)
        for line in [1, 5, 9, 3, 7, 0, 9]:
            assert list(resolver(line)) == resolve_heading_path(self.HEADINGS, line)
