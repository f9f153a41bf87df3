"""Text helpers for hashing, normalization and sentence splitting."""

import hashlib
import logging
import math
import re
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_FRONTMATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_MD_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_EMPHASIS = re.compile(r"[*_]{1,3}([^*_]+)[*_]{1,3}")
_TRAILING_SPACE = re.compile(r"[ \t]+\n")
_INNER_SPACE = re.compile(r"[ \t]{2,}")
_BLANK_RUNS = re.compile(r"\n{3,}")

# A boundary is whitespace after .!? that is followed by an uppercase Latin or
# Cyrillic letter or a digit.
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+(?=[A-ZА-ЯЁ0-9])")


def sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def strip_frontmatter(markdown: str) -> str:
    return _FRONTMATTER.sub("", markdown, count=1)


def normalize_markdown(markdown: str) -> str:
    """Normalize text for hashing and embedding.

    Strips YAML frontmatter, rewrites ``[title](url)`` as ``title (url)``,
    drops emphasis markers and collapses whitespace. Only ever applied to a
    copy; block positions always refer to the original text.
    """
    text = strip_frontmatter(markdown or "")
    text = text.replace("\r\n", "\n")
    text = _MD_LINK.sub(r"\1 (\2)", text)
    text = _EMPHASIS.sub(r"\1", text)
    text = _TRAILING_SPACE.sub("\n", text)
    text = _INNER_SPACE.sub(" ", text)
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip()


def split_into_sentences(paragraph: str) -> list[str]:
    cleaned = paragraph.strip()
    if not cleaned:
        return []
    parts = [p.strip() for p in SENTENCE_BOUNDARY.split(cleaned)]
    parts = [p for p in parts if p]
    return parts or [cleaned]


def rough_token_count(text: str) -> int:
    """Estimate tokens as one per four characters."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def word_count(text: str) -> int:
    return len(text.split())


def parse_frontmatter(markdown: str) -> dict[str, Any]:
    """Return the YAML frontmatter of a note as a dict.

    Invalid YAML or a non-mapping document yields an empty dict.
    """
    match = _FRONTMATTER.match(markdown or "")
    if not match:
        return {}
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        logger.warning("Ignoring unparseable frontmatter: %s", exc)
        return {}
    return data if isinstance(data, dict) else {}
