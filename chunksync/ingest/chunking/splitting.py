# chunksync/ingest/chunking/splitting.py
"""
Span-based splitting helpers shared by the chunking strategies.

All helpers work on ``(start, end)`` spans into one source string and
never copy or rebuild text, so offsets stay exact regardless of how
much whitespace separates paragraphs or sentences. Returned spans are
trimmed (no leading/trailing whitespace) and never longer than
``max_chars``.

Splitting cascades: paragraphs -> sentences -> hard cuts at whitespace.
"""

from __future__ import annotations

import re
from typing import Callable, List, Pattern, Tuple

Span = Tuple[int, int]

PARAGRAPH_SEPARATOR = re.compile(r"\n\s*\n")
SENTENCE_SEPARATOR = re.compile(r"(?<=[.!?])\s+")


def trim_span(text: str, start: int, end: int) -> Span:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end


def _pieces(text: str, start: int, end: int, separator: Pattern[str]) -> List[Span]:
    """Non-empty trimmed spans of text[start:end] between separator matches."""
    segment = text[start:end]
    raw: List[Span] = []
    cursor = 0
    for match in separator.finditer(segment):
        raw.append((cursor, match.start()))
        cursor = match.end()
    raw.append((cursor, len(segment)))

    pieces: List[Span] = []
    for s, e in raw:
        s, e = trim_span(segment, s, e)
        if s < e:
            pieces.append((start + s, start + e))
    return pieces


def _pack(
    pieces: List[Span],
    max_chars: int,
    oversize: Callable[[int, int], List[Span]],
) -> List[Span]:
    """
    Greedily merge consecutive pieces into windows no longer than max_chars.

    A window's length includes the original separators between its pieces.
    Pieces that alone exceed max_chars are handed to ``oversize``.
    """
    spans: List[Span] = []
    window = None

    for s, e in pieces:
        if e - s > max_chars:
            if window is not None:
                spans.append(window)
                window = None
            spans.extend(oversize(s, e))
            continue

        if window is None:
            window = (s, e)
        elif e - window[0] <= max_chars:
            window = (window[0], e)
        else:
            spans.append(window)
            window = (s, e)

    if window is not None:
        spans.append(window)
    return spans


def hard_split(text: str, max_chars: int, start: int = 0, end: int = -1) -> List[Span]:
    """Cut text[start:end] into spans of at most max_chars, preferring whitespace breaks."""
    if end < 0:
        end = len(text)
    spans: List[Span] = []
    pos = start

    while pos < end:
        limit = min(pos + max_chars, end)
        if limit < end and not text[limit].isspace():
            cut = max(text.rfind(" ", pos + 1, limit), text.rfind("\n", pos + 1, limit))
            if cut > pos:
                limit = cut
        s, e = trim_span(text, pos, limit)
        if s < e:
            spans.append((s, e))
        pos = limit
        while pos < end and text[pos].isspace():
            pos += 1

    return spans


def split_sentences(text: str, max_chars: int, start: int = 0, end: int = -1) -> List[Span]:
    """Pack sentences (terminal punctuation followed by whitespace) into windows."""
    if end < 0:
        end = len(text)
    pieces = _pieces(text, start, end, SENTENCE_SEPARATOR)
    return _pack(pieces, max_chars, lambda s, e: hard_split(text, max_chars, s, e))


def split_paragraphs(text: str, max_chars: int, start: int = 0, end: int = -1) -> List[Span]:
    """Pack blank-line separated paragraphs into windows; oversized ones go to sentences."""
    if end < 0:
        end = len(text)
    pieces = _pieces(text, start, end, PARAGRAPH_SEPARATOR)
    return _pack(pieces, max_chars, lambda s, e: split_sentences(text, max_chars, s, e))


__all__ = [
    "Span",
    "PARAGRAPH_SEPARATOR",
    "SENTENCE_SEPARATOR",
    "trim_span",
    "hard_split",
    "split_sentences",
    "split_paragraphs",
]
