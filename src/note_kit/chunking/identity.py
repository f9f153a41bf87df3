"""Stable chunk IDs and embedding text."""

import re
from collections.abc import Sequence

from .text import sha256

_PAREN_BLOCK_REF = re.compile(r"\^\(([A-Za-z0-9_-]{3,})\)")
_BARE_BLOCK_REF = re.compile(r"(?:^|(?<=\s))\^([A-Za-z0-9_-]{3,})(?![A-Za-z0-9_(-])")


def extract_block_id(text: str) -> str | None:
    """Return an author-supplied block reference found in ``text``.

    ``^(token)`` wins over a bare ``^token``; both are returned verbatim. A
    bare reference must start the text or follow whitespace, so footnote
    markers such as ``[^1]`` and exponents such as ``x^2`` are not matched.
    """
    match = _PAREN_BLOCK_REF.search(text)
    if match:
        return match.group(0)
    match = _BARE_BLOCK_REF.search(text)
    if match:
        return match.group(0)
    return None


def to_hash(embedding_text: str) -> str:
    return sha256(embedding_text)


def build_embedding_text(
    heading_path: Sequence[str],
    parent_item_text: str | None,
    text: str,
) -> str:
    heading = f"H: {' > '.join(heading_path)}. " if heading_path else ""
    parent = f"Parent: {parent_item_text}. " if parent_item_text else ""
    return f"{heading}{parent}{text}".strip()
