# chunksync/ingest/chunking/speakers.py
"""
Speaker display-name overrides for transcripts.

Diarization labels speakers with opaque ids ("SPEAKER_00"). Users can
rename them per transcript; the transcript strategy resolves the display
name through this mapping when it builds chunks. One instance is owned
by one IndexService and lives as long as it does.
"""

from __future__ import annotations

from typing import Dict, Optional


class SpeakerNames:
    """Owned mapping: transcript path -> speaker id -> display name."""

    def __init__(self) -> None:
        self._overrides: Dict[str, Dict[str, str]] = {}

    def rename(self, transcript: str, speaker_id: str, name: str) -> None:
        name = name.strip()
        if not name:
            raise ValueError("Speaker name must not be empty")
        self._overrides.setdefault(transcript, {})[speaker_id] = name

    def resolve(self, transcript: str, speaker_id: str) -> str:
        return self._overrides.get(transcript, {}).get(speaker_id, speaker_id)

    def overrides_for(self, transcript: str) -> Dict[str, str]:
        return dict(self._overrides.get(transcript, {}))

    def clear(self, transcript: Optional[str] = None) -> None:
        if transcript is None:
            self._overrides.clear()
        else:
            self._overrides.pop(transcript, None)

    def __len__(self) -> int:
        return sum(len(names) for names in self._overrides.values())


__all__ = ["SpeakerNames"]
