"""EditController — 씬 편집 적용 후 나레이션/재생 상태 재계산."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from preview_composer.models.timeline import Timeline
from preview_composer.services.scene_edit_service import SceneEdit, SceneEditService

if TYPE_CHECKING:
    from preview_composer.controllers.preview_context import PreviewContext

logger = logging.getLogger(__name__)


class EditController:
    """SceneEditService 결과(SceneEdit)를 타임라인과 엔진에 반영하는 Controller."""

    def __init__(self, ctx: PreviewContext, service: SceneEditService | None = None) -> None:
        self.ctx = ctx
        self._service = service or SceneEditService()

    # ---- 편집 ----

    def set_selection_range(self, index: int, start: float, end: float) -> SceneEdit:
        return self._apply(self._service.set_selection_range(self.ctx.timeline.scenes, index, start, end))

    def set_original_video_duration(self, index: int, duration: float) -> SceneEdit:
        return self._apply(
            self._service.set_original_video_duration(self.ctx.timeline.scenes, index, duration)
        )

    def reorder(self, order: Sequence[int]) -> SceneEdit:
        return self._apply(self._service.reorder(self.ctx.timeline.scenes, order))

    def update_script(self, scene_id: str, script: str) -> SceneEdit:
        return self._apply(self._service.update_script(self.ctx.timeline.scenes, scene_id, script))

    def remove_scene(self, scene_id: str) -> SceneEdit:
        return self._apply(self._service.remove_scene(self.ctx.timeline.scenes, scene_id))

    def _apply(self, edit: SceneEdit) -> SceneEdit:
        if edit.is_noop:
            return edit

        ctx = self.ctx
        ctx.timeline.scenes = edit.scenes
        if edit.narration_stale:
            for scene_id in edit.changed_scene_ids:
                dropped = ctx.narration.invalidate_scene(scene_id)
                logger.debug(f"Narration invalidated for {scene_id} ({dropped} entries)")
        ctx.narration.prune(ctx.timeline)

        self.rebuild_playback()
        return edit

    # ---- 나레이션 결과 반영 ----

    def set_scene_duration_from_audio(self, scene_id: str, seconds: float) -> bool:
        """합성된 나레이션 길이를 씬 길이로 반영."""
        if not self.ctx.timeline.set_scene_duration(scene_id, seconds):
            return False
        self.rebuild_playback()
        return True

    def rebuild_playback(self) -> None:
        """세그먼트 테이블/전체 길이를 다시 계산하고 현재 프레임을 다시 그린다."""
        ctx = self.ctx
        table = ctx.narration.build_segment_table(ctx.timeline)
        ctx.playback_ctrl.refresh_narration(table)
        ctx.renderer.render_at(
            ctx.transport.get_time(),
            skip_animation=ctx.transport.is_playing,
        )

    # ---- 타임라인 교체/초기화 ----

    def load_timeline(self, timeline: Timeline) -> None:
        ctx = self.ctx
        ctx.transport.pause()
        ctx.tts_track.stop_all()
        ctx.timeline = timeline
        ctx.narration.prune(timeline)
        if timeline.playback_speed > 0:
            ctx.transport.set_rate(timeline.playback_speed)
        ctx.locator.recompute_from_time()
        self.rebuild_playback()

    def reset_timeline(self) -> None:
        """모든 씬/캐시/재생 상태 초기화."""
        ctx = self.ctx
        ctx.transport.pause()
        ctx.tts_track.stop_all()
        ctx.tts_track.set_segments([])
        ctx.bgm.confirm_template(None)
        ctx.narration.reset()
        ctx.timeline.reset()
        ctx.transport.reset()
        ctx.transport.set_total_duration(0.0)
        ctx.locator.recompute_from_time()
        logger.info("Timeline reset")
