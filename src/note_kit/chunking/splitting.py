import logging
import math
from dataclasses import replace

from .text import SENTENCE_BOUNDARY, rough_token_count, word_count
from .types import BlockType, ChunkOptions, ParsedBlock, Position, Span

logger = logging.getLogger(__name__)

OVERLAP_SENTENCES = 2
TOKEN_LIMIT = 800


def _sentence_offsets(text: str) -> list[tuple[int, int]]:
    """Return (start, end) of each sentence within ``text``, whitespace trimmed."""
    offsets = []
    cut = 0
    for match in [*SENTENCE_BOUNDARY.finditer(text), None]:
        stop = match.start() if match else len(text)
        piece = text[cut:stop]
        if piece.strip():
            lead = len(piece) - len(piece.lstrip())
            offsets.append((cut + lead, cut + len(piece.rstrip())))
        if match:
            cut = match.end()
    return offsets


def _position(block: ParsedBlock, local: int) -> Position:
    line = block.span.start.line + block.text.count("\n", 0, local)
    return Position(line, block.span.start.offset + local)


def needs_split(block: ParsedBlock, options: ChunkOptions) -> bool:
    return (
        word_count(block.text) > options.long_paragraph_word_threshold
        or rough_token_count(block.text) > TOKEN_LIMIT
    )


def _split(block: ParsedBlock) -> list[ParsedBlock]:
    sentences = _sentence_offsets(block.text)
    total = len(sentences)
    if total <= 1:
        return [block]

    pieces: list[ParsedBlock] = []
    start = 0
    while True:
        remaining = total - start
        size = math.ceil(remaining / 2)
        # A half no larger than the overlap would never advance.
        if size <= OVERLAP_SENTENCES:
            size = remaining
        end = min(start + size, total)
        window = sentences[start:end]
        text = " ".join(block.text[a:b] for a, b in window)
        span = Span(_position(block, window[0][0]), _position(block, window[-1][1]))
        pieces.append(replace(block, text=text, span=span))
        if end == total:
            break
        start = end - OVERLAP_SENTENCES
    return pieces


def split_long_paragraphs(
    blocks: list[ParsedBlock], options: ChunkOptions
) -> list[ParsedBlock]:
    """Split long paragraphs into overlapping halves at sentence boundaries.

    Consecutive pieces share the last two sentences of the earlier piece.
    Spans of the pieces point at the original sentences.
    """
    result: list[ParsedBlock] = []
    for block in blocks:
        if block.type is not BlockType.PARAGRAPH or not needs_split(block, options):
            result.append(block)
            continue
        pieces = _split(block)
        logger.debug(
            "Split paragraph at offset %d into %d pieces", block.span.start.offset, len(pieces)
        )
        result.extend(pieces)
    return result
