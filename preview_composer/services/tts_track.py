"""Narration track: plays the segment table phase-locked to the transport."""

from __future__ import annotations

import bisect
import logging
from dataclasses import replace
from typing import Iterable, List

from PySide6.QtCore import QObject, Signal

from preview_composer.models.narration import ActiveSegment, NarrationSegment

logger = logging.getLogger(__name__)

_END_EPSILON = 1e-9


class TtsTrack(QObject):
    """
    여러 TTS 세그먼트를 하나의 연속 트랙으로 취급해서 타임라인 시간 t 기준으로
    재생합니다. 세그먼트 위치는 실제 합성 길이(duration_seconds) 기준입니다.
    """

    segment_started = Signal(int, float)    # scene_index, segment start (초)
    segment_finished = Signal(int, float)   # scene_index, segment end (초)

    def __init__(self, player=None, parent=None):
        super().__init__(parent)
        if player is None:
            from preview_composer.infrastructure.audio_player import QtAudioPlayer
            player = QtAudioPlayer(self)
        self._player = player
        self._segments: List[NarrationSegment] = []
        self._starts: List[float] = []
        self._current_index: int | None = None
        self._active = False
        self._allowed_scene_indices: set[int] | None = None
        # 로드된 소스 (cache_key 또는 url), 로드 완료 전 적용할 오프셋
        self._loaded_source: str | None = None
        self._pending_offset: float | None = None

        self._player.duration_known.connect(self._on_duration_known)
        self._player.error_occurred.connect(self._on_player_error)

    # -------------------------------------------------------- Segment table

    @property
    def segments(self) -> List[NarrationSegment]:
        return list(self._segments)

    @property
    def is_active(self) -> bool:
        """True while the track is outputting (or meant to output) narration."""
        return self._active

    @property
    def current_segment_index(self) -> int | None:
        return self._current_index

    def set_segments(self, segments: Iterable[NarrationSegment]):
        self._segments = sorted(segments, key=lambda s: s.start_seconds)
        self._starts = [s.start_seconds for s in self._segments]
        self._current_index = None

    def update_segments(self, segments: Iterable[NarrationSegment], current_t: float | None = None):
        """Swap the segment table; restart at *current_t* if it was playing."""
        was_playing = self._active
        if was_playing:
            self.stop_all()
        self.set_segments(segments)
        if was_playing and current_t is not None:
            self.play_from(current_t)

    def replace_scene_segments(
        self,
        scene_index: int,
        new_segments: List[NarrationSegment],
        current_t: float | None = None,
    ):
        """Replace one scene's segments, shifting later segments by the length change."""
        old = [s for s in self._segments if s.scene_index == scene_index]
        if not old and not new_segments:
            return

        old_duration = sum(s.duration_seconds for s in old)
        new_duration = sum(s.duration_seconds for s in new_segments)
        diff = new_duration - old_duration
        old_start = old[0].start_seconds if old else self._insert_position(scene_index)
        old_end = old_start + old_duration

        updated: List[NarrationSegment] = []
        for seg in self._segments:
            if seg.scene_index == scene_index:
                continue
            if seg.start_seconds >= old_end - _END_EPSILON:
                updated.append(replace(seg, start_seconds=seg.start_seconds + diff))
            else:
                updated.append(seg)

        offset = old_start
        for part_index, seg in enumerate(new_segments):
            updated.append(replace(
                seg, scene_index=scene_index, part_index=part_index, start_seconds=offset
            ))
            offset += seg.duration_seconds

        self.update_segments(updated, current_t)

    def _insert_position(self, scene_index: int) -> float:
        # 새 씬 세그먼트가 들어갈 위치: 앞 씬들의 마지막 세그먼트 끝
        ends = [s.end_seconds for s in self._segments if s.scene_index < scene_index]
        return max(ends) if ends else 0.0

    # -------------------------------------------------------- Lookup

    def get_active_segment(self, t: float) -> ActiveSegment | None:
        """Segment whose [start, end) window contains *t*.

        The final segment also covers its own end time. Gaps and times
        outside the table return None.
        """
        if not self._segments:
            return None
        i = bisect.bisect_right(self._starts, t) - 1
        if i < 0:
            return None
        seg = self._segments[i]
        if t < seg.end_seconds:
            return ActiveSegment(seg, t - seg.start_seconds, i)
        if i == len(self._segments) - 1 and abs(t - seg.end_seconds) <= _END_EPSILON:
            return ActiveSegment(seg, seg.duration_seconds, i)
        return None

    def set_allowed_scene_indices(self, indices: Iterable[int] | None):
        """Restrict playback to a scene group (None lifts the restriction)."""
        self._allowed_scene_indices = None if indices is None else set(indices)

    def _is_allowed(self, scene_index: int) -> bool:
        return self._allowed_scene_indices is None or scene_index in self._allowed_scene_indices

    # -------------------------------------------------------- Playback

    def play_from(self, t: float):
        """Start narration at timeline time *t*."""
        self._active = True
        active = self.get_active_segment(t)
        if active is None:
            self._stop_player()
            self._current_index = None
            return

        self._current_index = active.segment_index
        seg = active.segment
        if not self._is_allowed(seg.scene_index) or not seg.has_audio:
            self._stop_player()
            return
        if active.offset >= seg.duration_seconds:
            # 마지막 세그먼트 끝: 재생할 것 없음
            self._stop_player()
            return

        source = seg.cache_key if seg.audio_data else seg.url
        try:
            if source == self._loaded_source:
                self._pending_offset = None
                self._player.set_position(active.offset)
            else:
                # 새 소스는 비동기 로드: 길이가 알려진 뒤에 위치 적용
                self._pending_offset = active.offset
                self._loaded_source = None
                if seg.audio_data:
                    self._player.set_source_bytes(seg.audio_data)
                else:
                    self._player.set_source_url(seg.url)
                self._loaded_source = source
            self._player.play()
        except (OSError, RuntimeError) as e:
            logger.warning(f"Narration segment skipped (scene {seg.scene_index}): {e}")
            return
        self.segment_started.emit(seg.scene_index, seg.start_seconds)

    def _on_duration_known(self, duration: float):
        if self._pending_offset is None:
            return
        offset = min(self._pending_offset, duration)
        self._pending_offset = None
        try:
            self._player.set_position(offset)
        except (OSError, RuntimeError) as e:
            logger.debug(f"Narration seek failed: {e}")

    def _on_player_error(self, message: str):
        logger.debug(f"Narration player error: {message}")
        self._loaded_source = None
        self._pending_offset = None

    def sync(self, t: float):
        """Per-tick follow-up: move to the next segment when the cursor crosses one."""
        if not self._active:
            return
        active = self.get_active_segment(t)
        new_index = active.segment_index if active is not None else None
        if new_index == self._current_index:
            return

        if self._current_index is not None:
            prev = self._segments[self._current_index]
            self.segment_finished.emit(prev.scene_index, prev.end_seconds)
        self.play_from(t)

    def pause(self):
        """Pause narration output (play_from resumes at the right offset)."""
        self._active = False
        self._pending_offset = None
        try:
            self._player.pause()
        except (OSError, RuntimeError) as e:
            logger.debug(f"Narration pause failed: {e}")

    def stop_all(self):
        """Stop every narration output (used while scrubbing paused)."""
        self._active = False
        self._current_index = None
        self._stop_player()

    def _stop_player(self):
        self._pending_offset = None
        try:
            self._player.stop()
        except (OSError, RuntimeError) as e:
            logger.debug(f"Narration stop failed: {e}")

    def dispose(self):
        self.stop_all()
        self._loaded_source = None
        self._segments = []
        self._starts = []
        dispose = getattr(self._player, "dispose", None)
        if dispose is not None:
            dispose()
