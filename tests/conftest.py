"""Shared fixtures for preview engine tests."""

from __future__ import annotations

import os
from unittest.mock import MagicMock

import pytest

from preview_composer.models.narration import SynthesisResult
from preview_composer.models.scene import Scene
from preview_composer.models.timeline import Timeline
from preview_composer.services import narration_logger
from preview_composer.services.tts_service import SpeechSynthesizer, SynthesisError

# CI 등 디스플레이 없는 환경
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(autouse=True)
def _narration_log_dir(tmp_path):
    """Keep the narration request log out of the home directory."""
    narration_logger.set_log_dir(tmp_path / "logs")
    yield
    narration_logger.set_log_dir(None)


class FakeSynthesizer(SpeechSynthesizer):
    """Counts calls; duration = 0.1s per markup character (capped)."""

    def __init__(self, fail_markups: set[str] | None = None, delay: float = 0.0):
        self.calls: list[tuple[str, str]] = []
        self.fail_markups = set(fail_markups or ())
        self.delay = delay

    async def synthesize(self, voice_id: str, markup: str) -> SynthesisResult:
        import asyncio

        self.calls.append((voice_id, markup))
        if self.delay:
            await asyncio.sleep(self.delay)
        if markup in self.fail_markups:
            raise SynthesisError(f"boom: {markup}")
        return SynthesisResult(
            audio_bytes=f"{voice_id}|{markup}".encode("utf-8"),
            duration_seconds=min(0.1 * len(markup), 3.0),
        )


@pytest.fixture
def fake_synth() -> FakeSynthesizer:
    return FakeSynthesizer()


def make_timeline(durations=(2.0, 3.0, 1.5), scripts=None) -> Timeline:
    scripts = scripts or [f"Scene {i + 1}." for i in range(len(durations))]
    scenes = [
        Scene(scene_id=f"s{i + 1}", order_index=i, duration_seconds=d, script=scripts[i])
        for i, d in enumerate(durations)
    ]
    return Timeline(scenes=scenes)


@pytest.fixture
def timeline() -> Timeline:
    return make_timeline()


@pytest.fixture
def mock_player() -> MagicMock:
    """IAudioPlayer double (signals are MagicMocks too)."""
    player = MagicMock()
    player.duration.return_value = 0.0
    player.position.return_value = 0.0
    player.is_playing.return_value = False
    return player
