"""Background worker for whole-timeline narration synthesis."""

from __future__ import annotations

import asyncio
import copy
import logging

from PySide6.QtCore import QObject, Signal

from preview_composer.models.timeline import Timeline
from preview_composer.services.narration_service import NarrationService

logger = logging.getLogger(__name__)


class NarrationWorker(QObject):
    """Runs narration synthesis in a background thread.

    Signals:
        status_update(str): Status message for UI display.
        progress(int, int): (current, total) scene progress.
        scene_duration(str, float): (scene_id, seconds) once a scene is fully synthesized.
        finished(list): Positioned NarrationSegment table on success.
        error(str): Emitted with error message on failure.
    """

    status_update = Signal(str)
    progress = Signal(int, int)
    scene_duration = Signal(str, float)
    finished = Signal(list)
    error = Signal(str)

    def __init__(self, service: NarrationService, timeline: Timeline):
        super().__init__()
        self._service = service
        # 스레드에서는 UI가 편집 중인 타임라인 대신 스냅샷을 사용
        self._timeline = copy.deepcopy(timeline)
        self._cancelled = False

    def cancel(self) -> None:
        """Cancel the synthesis (in-flight requests finish, the rest are skipped)."""
        self._cancelled = True

    def run(self) -> None:
        """Execute the synthesis pipeline."""
        try:
            segments = asyncio.run(self._run_async())
        except Exception as e:
            if self._cancelled:
                # 취소 중 실패: 지금까지 캐시된 결과로 마무리
                self.finished.emit(self._service.build_segment_table(self._timeline))
            else:
                logger.exception("Narration worker failed")
                self.error.emit(str(e))
            return
        self.finished.emit(segments)

    async def _run_async(self) -> list:
        total = self._timeline.scene_count
        self.status_update.emit(f"Generating narration for {total} scenes...")

        def on_progress(current: int, count: int):
            self.progress.emit(current, count)

        segments = await self._service.ensure_timeline(
            self._timeline,
            on_progress=on_progress,
            is_cancelled=lambda: self._cancelled,
            on_scene_duration=self.scene_duration.emit,
        )
        self.status_update.emit(f"Narration ready: {len(segments)} segments")
        return segments
