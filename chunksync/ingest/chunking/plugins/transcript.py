# chunksync/ingest/chunking/plugins/transcript.py
"""
Speaker-turn chunker for diarized transcripts (``*.transcript.json``).

Accepted input:
- a bare JSON array of segments, or
- an object with a ``segments`` array

Each segment carries ``speaker``, ``text`` and start/end times
(``startTime``/``endTime`` or ``start``/``end``). Consecutive segments
from the same speaker are merged into one turn when the silence between
them is at most ``merge_gap`` seconds. Every turn becomes a chunk;
turns over max_chunk_chars are split at sentence boundaries and keep
their speaker and time range.

The extracted text of a transcript is its turn texts joined with "\\n";
chunk offsets index into that text.

Chunker ID format: "transcript:{max_chunk_chars}:{min_chunk_chars}:{merge_gap}"
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from chunksync.ingest.chunking.base import MAX_CHUNK_CHARS, MIN_CHUNK_CHARS, validate_bounds
from chunksync.ingest.chunking.speakers import SpeakerNames
from chunksync.ingest.chunking.splitting import split_sentences
from chunksync.ingest.exceptions import ChunkingError
from chunksync.ingest.models import Chunk, ChunkType
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import CHUNKING

logger = get_logger(__name__)

TURN_SEPARATOR = "\n"
UNKNOWN_SPEAKER = "Unknown"


class TranscriptSegment(BaseModel):
    """One diarized segment as written by the transcription service."""

    speaker: str = Field(
        default=UNKNOWN_SPEAKER,
        validation_alias=AliasChoices("speaker", "speakerId", "speaker_id"),
    )
    text: str = ""
    start: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("startTime", "start", "start_time")
    )
    end: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("endTime", "end", "end_time")
    )

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


@dataclass
class SpeakerTurn:
    speaker: str
    text: str
    start: Optional[float]
    end: Optional[float]


def parse_segments(text: str) -> List[TranscriptSegment]:
    """
    Parse transcript JSON into segments.

    Raises:
        ChunkingError: If the document is not JSON or has no segment array.
    """
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise ChunkingError(f"Transcript is not valid JSON: {e}") from e

    if isinstance(data, dict):
        data = data.get("segments")
    if not isinstance(data, list):
        raise ChunkingError("Transcript has no segments array")

    segments: List[TranscriptSegment] = []
    for i, raw in enumerate(data):
        try:
            segments.append(TranscriptSegment.model_validate(raw))
        except ValidationError as e:
            logger.debug(f"{CHUNKING} Skipping malformed transcript segment {i}: {e}")
    return segments


def merge_segments(segments: List[TranscriptSegment], merge_gap: float) -> List[SpeakerTurn]:
    """Merge consecutive same-speaker segments separated by at most merge_gap seconds."""
    turns: List[SpeakerTurn] = []

    for segment in segments:
        text = segment.text.strip()
        if not text:
            continue

        if turns:
            last = turns[-1]
            gap = (segment.start or 0.0) - (last.end or 0.0)
            if last.speaker == segment.speaker and gap <= merge_gap:
                last.text = f"{last.text} {text}"
                last.end = segment.end if segment.end is not None else last.end
                continue

        turns.append(
            SpeakerTurn(speaker=segment.speaker, text=text, start=segment.start, end=segment.end)
        )

    return turns


@dataclass
class TranscriptChunker:
    """
    Example:
        >>> chunker = TranscriptChunker(min_chunk_chars=1)
        >>> doc = '[{"speaker":"A","text":"hi","start":0,"end":1},' \\
        ...       ' {"speaker":"A","text":"there","start":1.5,"end":2}]'
        >>> [c.content for c in chunker.chunk_text(doc, "call.transcript.json")]
        ['hi there']
    """

    plugin_name: str = field(default="transcript", repr=False)
    min_chunk_chars: int = MIN_CHUNK_CHARS
    max_chunk_chars: int = MAX_CHUNK_CHARS
    merge_gap: float = 2.0
    speaker_names: Optional[SpeakerNames] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        validate_bounds(self.min_chunk_chars, self.max_chunk_chars)
        if self.merge_gap < 0:
            raise ValueError(f"merge_gap must be >= 0, got {self.merge_gap}")

    @property
    def chunker_id(self) -> str:
        return f"{self.plugin_name}:{self.max_chunk_chars}:{self.min_chunk_chars}:{self.merge_gap}"

    def _display_name(self, file_path: str, speaker: str) -> str:
        if self.speaker_names is None:
            return speaker
        return self.speaker_names.resolve(file_path, speaker)

    def chunk_text(self, text: str, file_path: str) -> List[Chunk]:
        turns = merge_segments(parse_segments(text), self.merge_gap)
        extracted = TURN_SEPARATOR.join(turn.text for turn in turns)

        chunks: List[Chunk] = []
        offset = 0
        for turn in turns:
            turn_end = offset + len(turn.text)
            if len(turn.text) > self.max_chunk_chars:
                spans = split_sentences(extracted, self.max_chunk_chars, offset, turn_end)
            else:
                spans = [(offset, turn_end)]

            speaker = self._display_name(file_path, turn.speaker)
            for s, e in spans:
                if e - s < self.min_chunk_chars:
                    continue
                chunks.append(
                    Chunk(
                        file_path=file_path,
                        chunk_type=ChunkType.TRANSCRIPT_SPEAKER_TURN,
                        content=extracted[s:e],
                        start_offset=s,
                        end_offset=e,
                        speaker=speaker,
                        start_time=turn.start,
                        end_time=turn.end,
                    )
                )

            offset = turn_end + len(TURN_SEPARATOR)

        return chunks


__all__ = [
    "TranscriptSegment",
    "SpeakerTurn",
    "TranscriptChunker",
    "parse_segments",
    "merge_segments",
]
