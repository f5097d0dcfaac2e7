"""Background music state machine synced to the transport."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from PySide6.QtCore import QObject, Signal

from preview_composer.services.bgm_library import BgmLibrary
from preview_composer.utils.config import BGM_PREVIEW_VOLUME
from preview_composer.utils.time_utils import loop_position

logger = logging.getLogger(__name__)


class BgmState(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class BgmController(QObject):
    """
    BGM 재생 상태 관리 (Stopped -> Playing -> Paused -> Playing -> Stopped).

    BGM은 배속과 무관하게 항상 1.0x, 볼륨 0.5, 무한 반복으로 재생하고,
    위치는 타임라인 시간 % 트랙 길이로 맞춥니다. 재생 실패는 밖으로
    전파하지 않습니다 (1회 재시작 후 무음).
    """

    state_changed = Signal(str)

    def __init__(
        self,
        library: BgmLibrary | None = None,
        player=None,
        time_provider: Callable[[], float] | None = None,
        parent=None,
    ):
        super().__init__(parent)
        if player is None:
            from preview_composer.infrastructure.audio_player import QtAudioPlayer
            player = QtAudioPlayer(self)
        self._library = library or BgmLibrary()
        self._player = player
        self._time_provider = time_provider or (lambda: 0.0)

        self._state = BgmState.STOPPED
        self._confirmed_template_id: str | None = None
        self._loaded_template_id: str | None = None
        self._pending_position: float | None = None
        self._restart_attempted = False
        self.volume = BGM_PREVIEW_VOLUME

        self._player.duration_known.connect(self._on_duration_known)
        self._player.error_occurred.connect(self._on_player_error)

    # -------------------------------------------------------- Queries

    @property
    def state(self) -> BgmState:
        return self._state

    @property
    def confirmed_template_id(self) -> str | None:
        return self._confirmed_template_id

    @property
    def loaded_template_id(self) -> str | None:
        return self._loaded_template_id

    def position(self) -> float:
        if self._loaded_template_id is None:
            return 0.0
        return self._player.position()

    def _set_state(self, state: BgmState):
        if self._state == state:
            return
        self._state = state
        self.state_changed.emit(state.value)

    # -------------------------------------------------------- Reconcile

    def confirm_template(self, template_id: str | None, is_playing: bool = False):
        """사용자가 BGM 선택을 확정 (None = BGM 없음)"""
        self._confirmed_template_id = template_id
        self.reconcile(is_playing, template_id)

    def reconcile(self, is_playing: bool, template_id: str | None):
        if template_id and is_playing:
            if self._state == BgmState.PLAYING and self._loaded_template_id == template_id:
                if not self.resume():
                    self.start(template_id, self._time_provider())
            else:
                # 정지/일시정지 상태이거나 다른 템플릿이면 새로 시작
                self.start(template_id, self._time_provider())
        elif template_id:
            self.pause()
        else:
            self.stop()

    # -------------------------------------------------------- Control

    def start(self, template_id: str, timeline_time: float) -> bool:
        url = self._library.url_for(template_id)
        if url is None:
            logger.warning(f"BGM template unavailable: {template_id}")
            self.stop()
            return False

        self.stop()
        try:
            self._player.set_source_url(url)
            self._player.set_loop(True)
            self._player.set_volume(self.volume)
            self._player.set_rate(1.0)
            self._loaded_template_id = template_id
            self._pending_position = timeline_time
            self._apply_pending_position()
            self._player.play()
        except (OSError, RuntimeError) as e:
            logger.warning(f"BGM start failed ({template_id}): {e}")
            self.stop()
            return False

        self._set_state(BgmState.PLAYING)
        logger.debug(f"BGM started: {template_id} at t={timeline_time:.2f}")
        return True

    def pause(self):
        if self._state != BgmState.PLAYING:
            return
        try:
            self._player.pause()
        except (OSError, RuntimeError) as e:
            logger.debug(f"BGM pause failed: {e}")
        self._set_state(BgmState.PAUSED)

    def resume(self) -> bool:
        if self._loaded_template_id is None:
            return False
        try:
            self._player.play()
        except (OSError, RuntimeError) as e:
            logger.debug(f"BGM resume failed: {e}")
            return False
        self._set_state(BgmState.PLAYING)
        return True

    def stop(self):
        """어느 상태에서든 호출하면 STOPPED"""
        if self._loaded_template_id is not None:
            try:
                self._player.stop()
            except (OSError, RuntimeError) as e:
                logger.debug(f"BGM stop failed: {e}")
        self._loaded_template_id = None
        self._pending_position = None
        self._restart_attempted = False
        self._set_state(BgmState.STOPPED)

    def seek(self, timeline_time: float):
        if self._loaded_template_id is None:
            return
        self._pending_position = timeline_time
        self._apply_pending_position()

    # -------------------------------------------------------- Player callbacks

    def _apply_pending_position(self):
        if self._pending_position is None:
            return
        duration = self._player.duration()
        if duration > 0:
            self._player.set_position(loop_position(self._pending_position, duration))
            self._pending_position = None

    def _on_duration_known(self, _duration: float):
        if self._loaded_template_id is not None:
            self._apply_pending_position()

    def _on_player_error(self, message: str):
        if self._loaded_template_id is None:
            return
        template_id = self._loaded_template_id
        if self._restart_attempted or self._state != BgmState.PLAYING:
            logger.warning(f"BGM failed, continuing without music: {message}")
            self.stop()
            return

        logger.info(f"BGM error, restarting once: {message}")
        if self.start(template_id, self._time_provider()):
            self._restart_attempted = True
