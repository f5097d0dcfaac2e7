"""Infrastructure layer: external collaborators (audio output, canvas rendering).

이 계층은 외부 도구/라이브러리를 추상화하여 엔진 계층이
구현체에 직접 의존하지 않도록 합니다.
"""

from preview_composer.infrastructure.audio_player import IAudioPlayer, QtAudioPlayer
from preview_composer.infrastructure.renderer import RecordingRenderer, SceneRenderer

__all__ = [
    "IAudioPlayer",
    "QtAudioPlayer",
    "RecordingRenderer",
    "SceneRenderer",
]
