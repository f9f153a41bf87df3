from .types import BlockType, ChunkOptions, ParsedBlock, Span


def _is_short_item(block: ParsedBlock, options: ChunkOptions) -> bool:
    return (
        block.type is BlockType.LIST_ITEM
        and len(block.text) < options.list_short_char_threshold
    )


def _merge(group: list[ParsedBlock]) -> ParsedBlock:
    first, last = group[0], group[-1]
    indexes = [b.item_index for b in group if b.item_index is not None]
    return ParsedBlock(
        type=BlockType.LIST_GROUP,
        text="\n".join(f"• {b.text}" for b in group),
        heading_path=first.heading_path,
        span=Span(first.span.start, last.span.end),
        list_depth=first.list_depth,
        parent_item_text=first.parent_item_text,
        item_index=first.item_index,
        item_index_range=(indexes[0], indexes[-1]) if indexes else None,
    )


def group_short_list_items(
    blocks: list[ParsedBlock], options: ChunkOptions
) -> list[ParsedBlock]:
    """Merge runs of short sibling list items into ``list_group`` blocks.

    A run only continues while items share the exact heading path and list
    depth, and stops at ``list_group_max`` items. Runs shorter than
    ``list_group_min`` are emitted unchanged. Idempotent: ``list_group``
    blocks are never merged again.
    """
    result: list[ParsedBlock] = []
    i = 0
    while i < len(blocks):
        block = blocks[i]
        if not _is_short_item(block, options):
            result.append(block)
            i += 1
            continue

        group = [block]
        j = i + 1
        while (
            j < len(blocks)
            and len(group) < options.list_group_max
            and _is_short_item(blocks[j], options)
            and blocks[j].heading_path == block.heading_path
            and (blocks[j].list_depth or 0) == (block.list_depth or 0)
        ):
            group.append(blocks[j])
            j += 1

        if len(group) >= options.list_group_min:
            result.append(_merge(group))
            i = j
        else:
            result.append(block)
            i += 1
    return result
