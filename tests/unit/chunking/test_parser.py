import pytest

from note_kit.chunking.cache import StructuralCache
from note_kit.chunking.parser import build_blocks, parse_blocks, should_ignore_block
from note_kit.chunking.scanner import scan_markdown_structure
from note_kit.chunking.types import BlockType


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   \n  ",
        "![[diagram.png]]",
        "---",
        "*****",
        "___",
        "> [!warning]- Collapsed",
        "> [!tip]\n> with a body",
        "[[Home]]",
        "[[Home]], [[Index]] | [site](https://example.com)",
        "- [[Home]]",
        "^abc123",
        "^(abc123)",
    ],
)
def test_ignored_blocks(text: str) -> None:
    assert should_ignore_block(text)


@pytest.mark.parametrize(
    "text",
    [
        "Plain prose.",
        "See [[Home]] for details.",
        "A sentence with a trailing ref ^abc123",
        "> Just a quote.",
        "--",
        "![[before.png]] The caption explains both diagrams in detail ![[after.png]]",
    ],
)
def test_kept_blocks(text: str) -> None:
    assert not should_ignore_block(text)


class TestParseBlocks:
    def test_paragraph_keeps_raw_slice(self) -> None:
        markdown = "First line\nsecond line  \n\nNext."

        blocks = parse_blocks(markdown, scan_markdown_structure(markdown))

        assert blocks[0].text == "First line\nsecond line  "
        assert blocks[0].span.start.offset == 0
        assert blocks[1].span.start.line == 3

    def test_table_and_quote_types(self) -> None:
        markdown = "| a | b |\n| - | - |\n| 1 | 2 |\n\n> quoted"

        blocks = build_blocks(markdown, scan_markdown_structure(markdown))

        assert [b.type for b in blocks] == [BlockType.TABLE, BlockType.QUOTE]
        assert blocks[0].text == "| a | b |\n| - | - |\n| 1 | 2 |"

    def test_list_items_carry_depth_index_and_parent(self) -> None:
        markdown = "1. first\n2. second\n   - nested a\n   - nested b\n3. third"

        blocks = build_blocks(markdown, scan_markdown_structure(markdown))

        assert [(b.text, b.list_depth, b.item_index) for b in blocks] == [
            ("first", 0, 1),
            ("second", 0, 2),
            ("nested a", 1, 1),
            ("nested b", 1, 2),
            ("third", 0, 3),
        ]
        assert blocks[2].parent_item_text == "second"
        assert blocks[4].parent_item_text is None

    def test_tab_indented_items_nest(self) -> None:
        markdown = "- top\n\t- under"

        blocks = build_blocks(markdown, scan_markdown_structure(markdown))

        assert blocks[1].list_depth == 2
        assert blocks[1].parent_item_text is None

    def test_unknown_region_type_becomes_paragraph(self) -> None:
        markdown = "$$ x^2 $$"
        cache = StructuralCache.model_validate(
            {
                "sections": [
                    {
                        "type": "math",
                        "position": {
                            "start": {"line": 0, "offset": 0},
                            "end": {"line": 0, "offset": 9},
                        },
                    }
                ]
            }
        )

        [block] = parse_blocks(markdown, cache)

        assert block.type is BlockType.PARAGRAPH
        assert block.text == markdown

    def test_empty_cache_uses_whole_document(self) -> None:
        [block] = parse_blocks("  Only text.  ", StructuralCache())

        assert block.text == "Only text."
        assert (block.span.start.offset, block.span.end.offset) == (2, 12)

    def test_headings_only_cache_yields_no_blocks(self) -> None:
        markdown = "# Title\n\n## Sub"

        assert parse_blocks(markdown, scan_markdown_structure(markdown)) == []

    def test_out_of_range_regions_use_whole_document(self) -> None:
        cache = StructuralCache.model_validate(
            {
                "sections": [
                    {
                        "type": "paragraph",
                        "position": {
                            "start": {"line": 9, "offset": 500},
                            "end": {"line": 9, "offset": 520},
                        },
                    }
                ]
            }
        )

        [block] = parse_blocks("Only text.", cache)

        assert block.text == "Only text."
