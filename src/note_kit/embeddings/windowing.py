"""Fit oversized texts into an embedding model's input budget.

A text over ``max_tokens`` (estimated at four characters per token) is cut
into sentence windows that each fit, every window is embedded, and the
window vectors are averaged back into one vector per input text.
"""

import re
from collections.abc import Sequence

import numpy as np

from note_kit.chunking.text import rough_token_count

_LINE_BREAKS = re.compile(r"\n+")
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def clean_text(text: str) -> str:
    return _LINE_BREAKS.sub("\n", text.replace("\r\n", "\n")).strip()


def split_to_windows(text: str, max_tokens: int) -> list[str]:
    if max_tokens <= 0:
        raise ValueError("max_tokens must be > 0")
    if rough_token_count(text) <= max_tokens:
        return [text]

    max_chars = max_tokens * 4
    windows: list[str] = []
    current = ""
    for sentence in _SENTENCE_END.split(text):
        # A single sentence over budget is hard-cut.
        while len(sentence) > max_chars:
            if current:
                windows.append(current)
                current = ""
            windows.append(sentence[:max_chars])
            sentence = sentence[max_chars:]
        candidate = f"{current} {sentence}" if current else sentence
        if len(candidate) > max_chars:
            windows.append(current)
            current = sentence
        else:
            current = candidate
    if current.strip():
        windows.append(current)
    return [w for w in windows if w.strip()] or [text[:max_chars]]


def average_vectors(vectors: Sequence[Sequence[float]]) -> list[float]:
    if not len(vectors):
        raise ValueError("No vectors to average")
    dimensions = len(vectors[0])
    if any(len(v) != dimensions for v in vectors):
        raise ValueError("Vectors must have the same dimensions")
    return np.asarray(vectors, dtype=np.float64).mean(axis=0).tolist()


def plan_windows(texts: list[str], max_tokens: int) -> tuple[list[str], list[int]]:
    """Flatten ``texts`` into windows; return windows and per-text window counts."""
    flat: list[str] = []
    counts: list[int] = []
    for text in texts:
        windows = split_to_windows(clean_text(text), max_tokens)
        flat.extend(windows)
        counts.append(len(windows))
    return flat, counts


def regroup(vectors: Sequence[Sequence[float]], counts: list[int]) -> list[tuple[list[float], int]]:
    """Average window vectors back into (vector, window count) per text."""
    grouped = []
    cursor = 0
    for count in counts:
        grouped.append((average_vectors(vectors[cursor : cursor + count]), count))
        cursor += count
    return grouped
