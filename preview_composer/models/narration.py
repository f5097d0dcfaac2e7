"""Narration segment models (pure Python, no Qt dependency)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SynthesisResult:
    """What a speech synthesizer hands back for one markup string."""

    audio_bytes: bytes
    duration_seconds: float
    mime_type: str = "audio/mpeg"


@dataclass(slots=True)
class NarrationSegment:
    """A synthesized audio clip for one scene part.

    ``start_seconds`` is the timeline position and is only assigned when the
    segment table is built; ``scene_index`` is likewise refreshed then,
    because indices shift under reordering while ``scene_id`` does not.
    """

    scene_id: str
    scene_index: int
    part_index: int
    markup: str
    audio_data: bytes
    duration_seconds: float
    cache_key: str
    url: str | None = None
    start_seconds: float = 0.0

    @property
    def end_seconds(self) -> float:
        return self.start_seconds + self.duration_seconds

    @property
    def has_audio(self) -> bool:
        return bool(self.audio_data) or bool(self.url)


@dataclass(frozen=True, slots=True)
class ActiveSegment:
    """Result of an active-segment lookup at some timeline time."""

    segment: NarrationSegment
    offset: float  # seconds into the segment
    segment_index: int

    @property
    def scene_index(self) -> int:
        return self.segment.scene_index
