# chunksync/ingest/chunking/plugins/markdown.py
"""
Markdown chunker that splits on headings.

Strategy:
1. Find ATX headings (# .. ######) outside fenced code blocks
2. Each heading opens a section running to the next heading
3. A heading stack gives every section its path ("Guide > Setup > Linux"):
   a new heading pops every entry of the same or deeper level first
4. Text before the first heading is a section without a path
5. Sections over max_chunk_chars are split at blank lines, keeping the path

Chunker ID format: "markdown:{max_chunk_chars}:{min_chunk_chars}"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from chunksync.ingest.chunking.base import MAX_CHUNK_CHARS, MIN_CHUNK_CHARS, validate_bounds
from chunksync.ingest.chunking.splitting import split_paragraphs, trim_span
from chunksync.ingest.models import Chunk, ChunkType

HEADING_PATH_SEPARATOR = " > "

# (start, end, heading_path)
_Section = Tuple[int, int, Optional[str]]


@dataclass
class MarkdownChunker:
    """
    Example:
        >>> chunker = MarkdownChunker(min_chunk_chars=1)
        >>> [c.heading_path for c in chunker.chunk_text("# A\\ntext1\\n\\n## B\\ntext2", "a.md")]
        ['A', 'A > B']
    """

    plugin_name: str = field(default="markdown", repr=False)
    min_chunk_chars: int = MIN_CHUNK_CHARS
    max_chunk_chars: int = MAX_CHUNK_CHARS

    _HEADER_PATTERN = re.compile(r"^(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$", re.MULTILINE)
    _FENCED_CODE_PATTERN = re.compile(r"^[ \t]{0,3}(```|~~~)[\s\S]*?^[ \t]{0,3}\1", re.MULTILINE)

    def __post_init__(self) -> None:
        validate_bounds(self.min_chunk_chars, self.max_chunk_chars)

    @property
    def chunker_id(self) -> str:
        return f"{self.plugin_name}:{self.max_chunk_chars}:{self.min_chunk_chars}"

    def _find_code_blocks(self, text: str) -> List[Tuple[int, int]]:
        return [(m.start(), m.end()) for m in self._FENCED_CODE_PATTERN.finditer(text)]

    def _split_into_sections(self, text: str) -> List[_Section]:
        code_ranges = self._find_code_blocks(text)
        sections: List[_Section] = []
        stack: List[Tuple[int, str]] = []
        current_start = 0
        current_path: Optional[str] = None

        for match in self._HEADER_PATTERN.finditer(text):
            pos = match.start()
            if any(start <= pos < end for start, end in code_ranges):
                continue

            if pos > current_start:
                sections.append((current_start, pos, current_path))

            level = len(match.group(1))
            title = match.group(2).strip()
            while stack and stack[-1][0] >= level:
                stack.pop()
            stack.append((level, title))

            current_start = pos
            current_path = HEADING_PATH_SEPARATOR.join(t for _, t in stack)

        sections.append((current_start, len(text), current_path))
        return sections

    def chunk_text(self, text: str, file_path: str) -> List[Chunk]:
        chunks: List[Chunk] = []

        for start, end, heading_path in self._split_into_sections(text):
            start, end = trim_span(text, start, end)
            if end - start < self.min_chunk_chars:
                continue

            if end - start > self.max_chunk_chars:
                spans = split_paragraphs(text, self.max_chunk_chars, start, end)
            else:
                spans = [(start, end)]

            for s, e in spans:
                if e - s < self.min_chunk_chars:
                    continue
                chunks.append(
                    Chunk(
                        file_path=file_path,
                        chunk_type=ChunkType.MARKDOWN_HEADING,
                        content=text[s:e],
                        start_offset=s,
                        end_offset=e,
                        heading_path=heading_path,
                    )
                )

        return chunks


__all__ = ["MarkdownChunker", "HEADING_PATH_SEPARATOR"]
