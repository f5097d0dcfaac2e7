"""Tests for active-scene lookup."""

import pytest

from preview_composer.models.narration import NarrationSegment
from preview_composer.services.scene_locator import SceneLocator
from preview_composer.services.transport import Transport
from preview_composer.services.tts_track import TtsTrack

from tests.conftest import make_timeline


def _segment(scene_index: int, start: float, duration: float) -> NarrationSegment:
    return NarrationSegment(
        scene_id=f"s{scene_index + 1}",
        scene_index=scene_index,
        part_index=0,
        markup="m",
        audio_data=b"a",
        duration_seconds=duration,
        cache_key=f"k{scene_index}",
        start_seconds=start,
    )


@pytest.fixture
def setup(qtbot, mock_player):
    timeline = make_timeline((2.0, 3.0, 1.5))
    transport = Transport(timeline.total_duration)
    track = TtsTrack(player=mock_player)
    locator = SceneLocator(lambda: timeline, track, transport)
    yield timeline, transport, track, locator
    transport.pause()


class TestLocate:
    def test_index_always_in_range(self, setup):
        timeline, _transport, track, locator = setup
        track.set_segments([_segment(0, 0.0, 1.0), _segment(1, 1.0, 4.0), _segment(2, 5.0, 1.5)])
        steps = int(timeline.total_duration / 0.05) + 1
        for i in range(steps):
            t = min(i * 0.05, timeline.total_duration)
            for playing in (True, False):
                assert 0 <= locator.locate(t, playing) < timeline.scene_count

    def test_playing_prefers_narration_segment(self, setup):
        _timeline, _transport, track, locator = setup
        # 씬 0 나레이션이 명목 길이(2.0)보다 짧음
        track.set_segments([_segment(0, 0.0, 1.0), _segment(1, 1.0, 4.0)])
        assert locator.locate(1.5, True) == 1
        assert locator.locate(1.5, False) == 0

    def test_playing_falls_back_in_gaps(self, setup):
        _timeline, _transport, track, locator = setup
        track.set_segments([_segment(0, 0.0, 1.0)])
        assert locator.locate(3.0, True) == 1

    def test_segment_index_is_clamped(self, setup):
        timeline, _transport, track, locator = setup
        track.set_segments([_segment(7, 0.0, 1.0)])
        assert locator.locate(0.5, True) == timeline.scene_count - 1

    def test_empty_timeline(self, qtbot, mock_player):
        timeline = make_timeline(())
        transport = Transport(0.0)
        locator = SceneLocator(lambda: timeline, TtsTrack(player=mock_player), transport)
        assert locator.locate(3.0, False) == 0


class TestManualSelection:
    def test_manual_index_wins_while_paused(self, setup):
        _timeline, transport, _track, locator = setup
        locator.select_scene(2, skip_seek=True)
        assert locator.locate(0.0, False) == 2
        assert transport.get_time() == 0.0

    def test_play_clears_manual_index(self, setup):
        _timeline, transport, _track, locator = setup
        locator.select_scene(2, skip_seek=True)
        transport.play()
        assert locator.manual_index is None

    def test_recompute_from_time(self, setup):
        _timeline, transport, _track, locator = setup
        locator.select_scene(2, skip_seek=True)
        transport.seek(2.5)
        assert locator.recompute_from_time() == 1

    def test_select_seeks_to_previous_segment_end(self, setup):
        _timeline, transport, track, locator = setup
        track.set_segments([_segment(0, 0.0, 1.2), _segment(1, 1.2, 2.0), _segment(2, 3.2, 1.0)])
        locator.select_scene(2)
        assert transport.get_time() == pytest.approx(3.2)

    def test_select_without_narration_uses_nominal_start(self, setup):
        _timeline, transport, _track, locator = setup
        locator.select_scene(1)
        assert transport.get_time() == pytest.approx(2.0)

    def test_select_first_scene_seeks_to_zero(self, setup):
        _timeline, transport, _track, locator = setup
        transport.seek(4.0)
        locator.select_scene(0)
        assert transport.get_time() == 0.0

    def test_select_clamps(self, setup):
        _timeline, _transport, _track, locator = setup
        assert locator.select_scene(99, skip_seek=True) == 2
