"""Maps the transport time (and play state) to the active scene index."""

from __future__ import annotations

import logging
from typing import Callable

from preview_composer.models.timeline import Timeline

logger = logging.getLogger(__name__)


class SceneLocator:
    """Active-scene lookup with a manual override while paused.

    While playing, the narration segment under the cursor is authoritative
    because real speech length can differ from the configured scene
    duration. Otherwise the pure cumulative-duration lookup is used, unless
    the user picked a scene manually.
    """

    def __init__(self, timeline_provider: Callable[[], Timeline | None], tts_track, transport):
        self._timeline_provider = timeline_provider
        self._tts_track = tts_track
        self._transport = transport
        self._manual_index: int | None = None
        transport.playing_changed.connect(self._on_playing_changed)

    @property
    def manual_index(self) -> int | None:
        return self._manual_index

    def _clamp(self, index: int, timeline: Timeline) -> int:
        if not timeline.scenes:
            return 0
        return max(0, min(index, len(timeline.scenes) - 1))

    def locate(self, t: float, is_playing: bool) -> int:
        timeline = self._timeline_provider()
        if timeline is None or not timeline.scenes:
            return 0

        if is_playing:
            active = self._tts_track.get_active_segment(t)
            if active is not None:
                return self._clamp(active.scene_index, timeline)
        elif self._manual_index is not None:
            return self._clamp(self._manual_index, timeline)

        return timeline.scene_index_at(t)

    def current_index(self) -> int:
        return self.locate(self._transport.get_time(), self._transport.is_playing)

    def previous_segment_end_time(self, index: int) -> float:
        """Where a manual selection of scene *index* seeks to.

        The end of the previous scene's last narration segment, so that the
        scene's entering transition plays from its beginning. Falls back to
        the scene's nominal start.
        """
        timeline = self._timeline_provider()
        if timeline is None or index <= 0:
            return 0.0
        segments = self._tts_track.segments
        prev_ends = [s.end_seconds for s in segments if s.scene_index == index - 1]
        if prev_ends:
            return max(prev_ends)
        own_starts = [s.start_seconds for s in segments if s.scene_index == index]
        if own_starts:
            return min(own_starts)
        return timeline.scene_start_time(index)

    def select_scene(self, index: int, skip_seek: bool = False) -> int:
        """Manually select a scene (thumbnail click). Returns the clamped index."""
        timeline = self._timeline_provider()
        if timeline is None or not timeline.scenes:
            return 0
        index = self._clamp(index, timeline)
        self._manual_index = index
        if not skip_seek:
            self._transport.seek(self.previous_segment_end_time(index))
        logger.debug(f"Scene {index} selected manually (skip_seek={skip_seek})")
        return index

    def recompute_from_time(self) -> int:
        """Drop the manual override and return the time-derived index."""
        self._manual_index = None
        return self.current_index()

    def _on_playing_changed(self, playing: bool):
        if playing:
            self._manual_index = None
