"""오디오 재생 추상화.

IAudioPlayer 프로토콜로 정의하여 TtsTrack / BgmController가 QtMultimedia에
직접 의존하지 않도록 함 (테스트에서는 MagicMock으로 대체).
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Protocol, runtime_checkable

from PySide6.QtCore import QObject, QUrl, Signal
from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer

logger = logging.getLogger(__name__)


@runtime_checkable
class IAudioPlayer(Protocol):
    """Minimal audio element used for narration and background music."""

    def set_source_bytes(self, data: bytes, suffix: str = ".mp3") -> None: ...
    def set_source_url(self, url: str) -> None: ...
    def play(self) -> None: ...
    def pause(self) -> None: ...
    def stop(self) -> None: ...
    def set_position(self, seconds: float) -> None: ...
    def position(self) -> float: ...
    def duration(self) -> float: ...
    def is_playing(self) -> bool: ...
    def set_volume(self, volume: float) -> None: ...
    def set_rate(self, rate: float) -> None: ...
    def set_loop(self, loop: bool) -> None: ...


class QtAudioPlayer(QObject):
    """QMediaPlayer + QAudioOutput 기반 IAudioPlayer 구현체.

    메모리 오디오는 세션 임시 폴더에 파일로 써서 재생합니다.
    """

    error_occurred = Signal(str)
    duration_known = Signal(float)   # 초
    finished = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self._player = QMediaPlayer(self)
        self._output = QAudioOutput(self)
        self._player.setAudioOutput(self._output)
        self._temp_dir: Path | None = None
        self._files: dict[str, Path] = {}  # sha1(bytes) -> temp file

        self._player.errorOccurred.connect(self._on_error)
        self._player.durationChanged.connect(self._on_duration)
        self._player.mediaStatusChanged.connect(self._on_status)

    # -------------------------------------------------------- Source

    def _session_dir(self) -> Path:
        if self._temp_dir is None:
            self._temp_dir = Path(tempfile.mkdtemp(prefix="preview_audio_"))
        return self._temp_dir

    def set_source_bytes(self, data: bytes, suffix: str = ".mp3") -> None:
        key = hashlib.sha1(data).hexdigest()
        path = self._files.get(key)
        if path is None or not path.exists():
            path = self._session_dir() / f"{uuid.uuid4().hex}{suffix}"
            path.write_bytes(data)
            self._files[key] = path
        self._set_source(QUrl.fromLocalFile(str(path)))

    def set_source_url(self, url: str) -> None:
        qurl = QUrl(url)
        if qurl.isRelative() or not qurl.scheme():
            qurl = QUrl.fromLocalFile(url)
        self._set_source(qurl)

    def _set_source(self, qurl: QUrl) -> None:
        if qurl == self._player.source() and self._player.duration() > 0:
            # 같은 소스는 다시 로드되지 않으므로 durationChanged도 오지 않음
            self.duration_known.emit(self._player.duration() / 1000.0)
            return
        self._player.setSource(qurl)

    # -------------------------------------------------------- Control

    def play(self) -> None:
        self._player.play()

    def pause(self) -> None:
        self._player.pause()

    def stop(self) -> None:
        self._player.stop()

    def set_position(self, seconds: float) -> None:
        self._player.setPosition(int(round(max(0.0, seconds) * 1000)))

    def position(self) -> float:
        return self._player.position() / 1000.0

    def duration(self) -> float:
        return self._player.duration() / 1000.0

    def is_playing(self) -> bool:
        return self._player.playbackState() == QMediaPlayer.PlaybackState.PlayingState

    def set_volume(self, volume: float) -> None:
        self._output.setVolume(max(0.0, min(1.0, volume)))

    def set_rate(self, rate: float) -> None:
        self._player.setPlaybackRate(rate)

    def set_loop(self, loop: bool) -> None:
        self._player.setLoops(QMediaPlayer.Loops.Infinite if loop else QMediaPlayer.Loops.Once)

    def dispose(self) -> None:
        """플레이어 정지 및 임시 파일 정리"""
        self._player.stop()
        self._player.setSource(QUrl())
        if self._temp_dir is not None:
            shutil.rmtree(self._temp_dir, ignore_errors=True)
            self._temp_dir = None
        self._files.clear()

    # -------------------------------------------------------- Callbacks

    def _on_error(self, error, message: str = ""):
        if error == QMediaPlayer.Error.NoError:
            return
        logger.warning(f"Audio player error: {message or error}")
        self.error_occurred.emit(message or str(error))

    def _on_duration(self, duration_ms: int):
        if duration_ms > 0:
            self.duration_known.emit(duration_ms / 1000.0)

    def _on_status(self, status):
        if status == QMediaPlayer.MediaStatus.EndOfMedia:
            self.finished.emit()
        elif status == QMediaPlayer.MediaStatus.InvalidMedia:
            self.error_occurred.emit("Invalid media")
