"""NarrationController — 백그라운드 나레이션 생성 스레드 관리."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from PySide6.QtCore import QObject, QThread, Slot

from preview_composer.workers.narration_worker import NarrationWorker

if TYPE_CHECKING:
    from preview_composer.controllers.preview_context import PreviewContext

logger = logging.getLogger(__name__)


class NarrationController(QObject):
    """Runs NarrationWorker on a QThread and applies its results to the context.

    Worker signals are handled on the thread this object lives in.
    """

    def __init__(self, ctx: PreviewContext, parent=None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        self._thread: QThread | None = None
        self._worker: NarrationWorker | None = None
        self.on_done: Callable[[bool], None] = lambda ok: None
        self.on_status: Callable[[str], None] = lambda message: None

    @property
    def is_running(self) -> bool:
        return self._thread is not None

    def generate_all(self) -> bool:
        """전체 타임라인 나레이션 생성 시작. 이미 실행 중이면 False."""
        if self._thread is not None:
            logger.info("Narration generation already running")
            return False

        self._thread = QThread()
        self._worker = NarrationWorker(self.ctx.narration, self.ctx.timeline)
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.status_update.connect(self._on_status)
        self._worker.scene_duration.connect(self._on_scene_duration)
        self._worker.finished.connect(self._on_finished)
        self._worker.error.connect(self._on_error)
        self._worker.finished.connect(self._cleanup_thread)
        self._worker.error.connect(self._cleanup_thread)
        self._thread.start()
        return True

    def cancel(self) -> None:
        if self._worker is not None:
            self._worker.cancel()

    # ---- Worker 콜백 ----

    @Slot(str)
    def _on_status(self, message: str) -> None:
        logger.info(message)
        self.on_status(message)

    @Slot(str, float)
    def _on_scene_duration(self, scene_id: str, _seconds: float) -> None:
        # 생성 중 대본이 바뀐 씬은 현재 대본 기준 캐시가 없으므로 건너뜀
        seconds = self.ctx.narration.cached_scene_duration(self.ctx.timeline, scene_id)
        if seconds is not None:
            self.ctx.edit_ctrl.set_scene_duration_from_audio(scene_id, seconds)

    @Slot(list)
    def _on_finished(self, _segments: list) -> None:
        # 워커 테이블은 시작 시점 스냅샷 기준이므로 현재 타임라인으로 캐시에서 다시 배치
        self.ctx.edit_ctrl.rebuild_playback()
        self.on_done(True)

    @Slot(str)
    def _on_error(self, message: str) -> None:
        logger.error(f"Narration generation failed: {message}")
        self.on_done(False)

    def _cleanup_thread(self, *_args) -> None:
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait()
            self._thread.deleteLater()
        if self._worker is not None:
            self._worker.deleteLater()
        self._thread = None
        self._worker = None
