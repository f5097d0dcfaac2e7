"""PlaybackController — 재생/시크 및 미디어 동기화 로직."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List

from PySide6.QtCore import Slot

from preview_composer.models.narration import NarrationSegment
from preview_composer.utils.config import DEFAULT_FPS
from preview_composer.utils.time_utils import frame_to_seconds

if TYPE_CHECKING:
    from preview_composer.controllers.preview_context import PreviewContext

logger = logging.getLogger(__name__)


class PlaybackController:
    """Transport 이벤트를 TTS/BGM/렌더러에 전달하고 시크를 조율하는 Controller."""

    def __init__(self, ctx: PreviewContext) -> None:
        self.ctx = ctx
        self._in_seek = False
        self._last_scene_index: int | None = None
        self._group: set[int] | None = None

    def connect_signals(self) -> None:
        self.ctx.transport.time_changed.connect(self.on_time_changed)
        self.ctx.transport.playing_changed.connect(self.on_playing_changed)

    # ---- Transport 콜백 ----

    @Slot(float)
    def on_time_changed(self, t: float) -> None:
        """Frame tick: 재생 중일 때만 나레이션/렌더를 따라가게 한다."""
        ctx = self.ctx
        if self._in_seek or not ctx.transport.is_playing:
            return
        ctx.tts_track.sync(t)
        ctx.renderer.render_at(t, skip_animation=False)

        index = ctx.locator.locate(t, True)
        if self._group is not None and index not in self._group:
            # 그룹 미리보기 범위를 벗어나면 정지
            ctx.transport.pause()
            return
        self._notify_scene_index(index)

    @Slot(bool)
    def on_playing_changed(self, playing: bool) -> None:
        ctx = self.ctx
        t = ctx.transport.get_time()
        if playing:
            ctx.tts_track.play_from(t)
        else:
            ctx.tts_track.pause()
            if self._group is not None:
                self.clear_group()
        ctx.bgm.reconcile(playing, ctx.bgm.confirmed_template_id)

    def _notify_scene_index(self, index: int) -> None:
        if index == self._last_scene_index:
            return
        self._last_scene_index = index
        self.ctx.on_scene_index_changed(index)

    # ---- 재생 토글 ----

    def toggle_play_pause(self) -> None:
        self.ctx.transport.toggle()

    def play(self) -> None:
        self.ctx.transport.play()

    def pause(self) -> None:
        self.ctx.transport.pause()

    def play_scene(self, index: int) -> None:
        """Single-scene preview."""
        self.play_group([index])

    def play_group(self, indices: Iterable[int]) -> None:
        """선택한 씬들만 재생. 범위를 벗어나거나 정지하면 그룹 해제."""
        ctx = self.ctx
        group = sorted({i for i in indices if 0 <= i < ctx.timeline.scene_count})
        if not group:
            return
        ctx.transport.pause()
        self._group = set(group)
        ctx.tts_track.set_allowed_scene_indices(group)
        ctx.locator.select_scene(group[0], skip_seek=True)
        self.seek(ctx.locator.previous_segment_end_time(group[0]))
        ctx.transport.play()

    def clear_group(self) -> None:
        self._group = None
        self.ctx.tts_track.set_allowed_scene_indices(None)

    # ---- 시크 ----

    def seek(self, target: float) -> None:
        """Move every time-dependent collaborator to *target* in a fixed order."""
        ctx = self.ctx
        was_playing = ctx.transport.is_playing

        self._in_seek = True
        try:
            ctx.transport.seek(target)
        finally:
            self._in_seek = False
        t = ctx.transport.get_time()

        if was_playing:
            ctx.tts_track.play_from(t)
        else:
            # 일시정지 상태에서 스크럽 중 오디오가 튀어나오지 않게
            ctx.tts_track.stop_all()

        if ctx.bgm.confirmed_template_id and was_playing:
            ctx.bgm.seek(t)

        ctx.renderer.render_at(t, skip_animation=was_playing)
        self._notify_scene_index(ctx.locator.locate(t, was_playing))

    def seek_relative(self, delta_seconds: float) -> None:
        self.seek(max(0.0, self.ctx.transport.get_time() + delta_seconds))

    def seek_frame_relative(self, frame_delta: int) -> None:
        """프레임 단위 시크."""
        if self.ctx.transport.total_duration <= 0:
            return
        self.seek_relative(frame_to_seconds(frame_delta, self._frame_fps()))

    def _frame_fps(self) -> int:
        fps = self.ctx.timeline.frames_per_second
        if fps and fps > 0:
            return int(fps)
        if self.ctx.settings is not None:
            return self.ctx.settings.get_frame_seek_fps()
        return DEFAULT_FPS

    def select_scene(self, index: int, skip_seek: bool = False) -> int:
        """썸네일 클릭: 수동 선택 후 이전 씬 세그먼트 끝으로 시크."""
        ctx = self.ctx
        index = ctx.locator.select_scene(index, skip_seek=True)
        if not skip_seek:
            self.seek(ctx.locator.previous_segment_end_time(index))
        else:
            ctx.renderer.render_at(ctx.transport.get_time(), force_scene_index=index)
        self._notify_scene_index(index)
        return index

    # ---- 나레이션/길이 동기화 ----

    def refresh_narration(self, segments: List[NarrationSegment]) -> None:
        """새 세그먼트 테이블 적용 (재생 중이면 현재 위치에서 이어서 재생)."""
        ctx = self.ctx
        ctx.tts_track.update_segments(segments, ctx.transport.get_time())
        self.sync_duration()

    def sync_duration(self) -> None:
        ctx = self.ctx
        total = ctx.timeline.total_duration
        segments = ctx.tts_track.segments
        if segments:
            total = max(total, max(s.end_seconds for s in segments))
        if abs(total - ctx.transport.total_duration) > 1e-9:
            logger.debug(f"Transport duration -> {total:.3f}s")
            ctx.transport.set_total_duration(total)
