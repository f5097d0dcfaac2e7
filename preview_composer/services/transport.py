from dataclasses import dataclass
import logging

from PySide6.QtCore import QObject, QTimer, QElapsedTimer, Signal, Qt

from preview_composer.utils.config import TICK_INTERVAL_MS

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransportState:
    current_time_seconds: float
    is_playing: bool
    playback_speed: float
    total_duration: float


class Transport(QObject):
    """
    프리뷰 재생의 단일 시계 (play/pause/seek 권한자).

    정밀 QTimer로 매 프레임 tick을 호출하고, QElapsedTimer로 실제 경과
    시간(delta)을 측정해서 재생 속도를 반영해 시간을 진행합니다.
    다른 컴포넌트는 시간을 직접 바꾸지 않고 play/pause/seek만 호출합니다.
    """

    playing_changed = Signal(bool)     # 재생 상태 변경 (실제로 바뀐 경우에만)
    time_changed = Signal(float)       # 현재 시간 (초)
    seeked = Signal(float)             # seek 완료 위치 (초)
    duration_changed = Signal(float)   # 전체 길이 변경 (초)

    def __init__(self, total_duration: float = 0.0, parent=None):
        super().__init__(parent)
        if total_duration < 0:
            raise ValueError("Total duration must be >= 0")

        self._current = 0.0
        self._total = float(total_duration)
        self._is_playing = False
        self._rate = 1.0

        # 정밀 타이머 설정
        self._timer = QTimer(self)
        self._timer.setTimerType(Qt.TimerType.PreciseTimer)
        self._timer.setInterval(TICK_INTERVAL_MS)
        self._timer.timeout.connect(self._on_timeout)

        # 델타 타임 측정을 위한 경과 시간 타이머
        self._elapsed_timer = QElapsedTimer()
        self._last_tick_ms = 0

    # -------------------------------------------------------- Queries

    def get_time(self) -> float:
        return self._current

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def total_duration(self) -> float:
        return self._total

    @property
    def playback_speed(self) -> float:
        return self._rate

    def state(self) -> TransportState:
        return TransportState(self._current, self._is_playing, self._rate, self._total)

    # -------------------------------------------------------- Control

    def play(self):
        """재생 시작. 끝에 있으면 처음부터 다시 재생합니다."""
        if self._is_playing:
            return
        if self._total <= 0:
            logger.debug("play() ignored: empty timeline")
            return
        if self._current >= self._total:
            self._current = 0.0
            self.time_changed.emit(self._current)

        self._is_playing = True
        self._elapsed_timer.start()
        self._last_tick_ms = self._elapsed_timer.elapsed()
        self._timer.start()
        self.playing_changed.emit(True)

    def pause(self):
        """일시 정지 (위치 유지)"""
        if not self._is_playing:
            return
        self._is_playing = False
        self._timer.stop()
        self.playing_changed.emit(False)

    def toggle(self):
        if self._is_playing:
            self.pause()
        else:
            self.play()

    def seek(self, time_seconds: float):
        """위치 이동. 재생 중이면 시계만 옮기고 프레임 루프는 계속 돕니다."""
        self._current = max(0.0, min(float(time_seconds), self._total))

        # 재생 중이었다면 델타 타임 기준점 재설정 (튀는 현상 방지)
        if self._is_playing:
            self._last_tick_ms = self._elapsed_timer.elapsed()

        self.time_changed.emit(self._current)
        self.seeked.emit(self._current)

    def set_rate(self, rate: float):
        """재생 속도 설정 (예: 1.0 = 1배속, 2.0 = 2배속)"""
        if rate <= 0:
            raise ValueError("Playback rate must be > 0")
        self._rate = float(rate)

    def set_total_duration(self, duration: float):
        if duration < 0:
            raise ValueError("Total duration must be >= 0")
        self._total = float(duration)
        if self._current > self._total:
            self._current = self._total
            self.time_changed.emit(self._current)
            self.pause()
        self.duration_changed.emit(self._total)

    def reset(self):
        """타임라인 초기화 시 호출"""
        self.pause()
        self._rate = 1.0
        self._current = 0.0
        self.time_changed.emit(self._current)

    # -------------------------------------------------------- Frame loop

    def tick(self, delta_seconds: float):
        """시간을 delta * 재생속도 만큼 진행. 끝에 도달하면 자동 정지."""
        if not self._is_playing:
            return
        next_t = self._current + max(0.0, delta_seconds) * self._rate
        if next_t >= self._total:
            self._current = self._total
            self.time_changed.emit(self._current)
            self.pause()
        else:
            self._current = next_t
            self.time_changed.emit(self._current)

    def _on_timeout(self):
        now = self._elapsed_timer.elapsed()
        delta_ms = now - self._last_tick_ms
        self._last_tick_ms = now
        self.tick(delta_ms / 1000.0)
