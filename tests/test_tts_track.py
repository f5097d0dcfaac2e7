"""Tests for narration track playback against the transport clock."""

import pytest

from preview_composer.models.narration import NarrationSegment
from preview_composer.services.tts_track import TtsTrack


def _segment(scene_index, start, duration, audio=b"a", url=None, part_index=0):
    return NarrationSegment(
        scene_id=f"s{scene_index + 1}",
        scene_index=scene_index,
        part_index=part_index,
        markup=f"m{scene_index}.{part_index}",
        audio_data=audio,
        duration_seconds=duration,
        cache_key=f"k{scene_index}.{part_index}",
        url=url,
        start_seconds=start,
    )


@pytest.fixture
def track(qtbot, mock_player):
    t = TtsTrack(player=mock_player)
    t.set_segments([_segment(0, 0.0, 1.0), _segment(1, 1.0, 2.0), _segment(2, 4.0, 1.0)])
    return t


class TestActiveSegment:
    def test_inside(self, track):
        active = track.get_active_segment(1.5)
        assert active.scene_index == 1
        assert active.offset == pytest.approx(0.5)

    def test_boundary_belongs_to_next(self, track):
        assert track.get_active_segment(1.0).scene_index == 1

    def test_gap(self, track):
        assert track.get_active_segment(3.5) is None

    def test_final_end_inclusive(self, track):
        active = track.get_active_segment(5.0)
        assert active.scene_index == 2
        assert active.offset == pytest.approx(1.0)

    def test_outside(self, track):
        assert track.get_active_segment(-0.1) is None
        assert track.get_active_segment(6.0) is None


class TestPlayback:
    def test_play_from_sets_offset(self, qtbot, track, mock_player):
        with qtbot.waitSignal(track.segment_started, timeout=1000) as blocker:
            track.play_from(1.25)
        mock_player.set_source_bytes.assert_called_with(b"a")
        mock_player.play.assert_called_once()
        # 로드 완료 전에는 위치를 건드리지 않음
        mock_player.set_position.assert_not_called()
        track._on_duration_known(2.0)
        mock_player.set_position.assert_called_once_with(pytest.approx(0.25))
        assert blocker.args == [1, 1.0]
        assert track.is_active

    def test_pending_offset_clamped_to_loaded_duration(self, track, mock_player):
        track.play_from(2.5)
        track._on_duration_known(0.4)
        mock_player.set_position.assert_called_once_with(pytest.approx(0.4))

    def test_same_source_seeks_immediately(self, track, mock_player):
        track.play_from(1.25)
        track._on_duration_known(2.0)
        track.play_from(2.5)
        assert mock_player.set_source_bytes.call_count == 1
        mock_player.set_position.assert_called_with(pytest.approx(1.5))

    def test_pending_offset_dropped_on_stop(self, track, mock_player):
        track.play_from(1.25)
        track.stop_all()
        track._on_duration_known(2.0)
        mock_player.set_position.assert_not_called()

    def test_player_error_forces_reload(self, track, mock_player):
        track.play_from(1.25)
        track._on_player_error("decode failed")
        track.play_from(1.5)
        assert mock_player.set_source_bytes.call_count == 2

    def test_url_source(self, qtbot, mock_player):
        t = TtsTrack(player=mock_player)
        t.set_segments([_segment(0, 0.0, 1.0, audio=b"", url="https://cdn/a.mp3")])
        t.play_from(0.0)
        mock_player.set_source_url.assert_called_with("https://cdn/a.mp3")

    def test_gap_stops_player(self, track, mock_player):
        track.play_from(3.5)
        mock_player.stop.assert_called()
        mock_player.play.assert_not_called()

    def test_end_of_last_segment_plays_nothing(self, track, mock_player):
        track.play_from(5.0)
        mock_player.play.assert_not_called()

    def test_player_failure_is_skipped(self, track, mock_player):
        mock_player.play.side_effect = RuntimeError("decoder")
        track.play_from(0.5)  # 예외가 밖으로 나오지 않음
        assert track.is_active

    def test_sync_moves_to_next_segment(self, qtbot, track, mock_player):
        track.play_from(0.5)
        finished = []
        track.segment_finished.connect(lambda idx, end: finished.append((idx, end)))
        track.sync(0.9)
        assert mock_player.play.call_count == 1
        track.sync(1.1)
        assert finished == [(0, 1.0)]
        assert mock_player.play.call_count == 2

    def test_sync_inactive_does_nothing(self, track, mock_player):
        track.sync(1.5)
        mock_player.play.assert_not_called()

    def test_pause_and_stop(self, track, mock_player):
        track.play_from(0.5)
        track.pause()
        mock_player.pause.assert_called_once()
        assert not track.is_active
        track.stop_all()
        mock_player.stop.assert_called()
        assert track.current_segment_index is None

    def test_allowed_scene_indices(self, track, mock_player):
        track.set_allowed_scene_indices([1])
        track.play_from(0.5)
        mock_player.play.assert_not_called()
        track.play_from(1.5)
        mock_player.play.assert_called_once()
        track.set_allowed_scene_indices(None)
        track.play_from(0.5)
        assert mock_player.play.call_count == 2


class TestSegmentUpdates:
    def test_replace_scene_segments_shifts_later(self, track):
        track.replace_scene_segments(1, [_segment(1, 0.0, 3.0)])
        starts = [(s.scene_index, s.start_seconds) for s in track.segments]
        assert starts == [(0, 0.0), (1, 1.0), (2, 5.0)]

    def test_replace_with_multiple_parts(self, track):
        track.replace_scene_segments(0, [_segment(0, 0, 0.5), _segment(0, 0, 0.7, part_index=1)])
        first_three = [(s.scene_index, s.part_index, s.start_seconds) for s in track.segments[:3]]
        assert first_three == [(0, 0, 0.0), (0, 1, 0.5), (1, 0, pytest.approx(1.2))]

    def test_update_segments_resumes_when_playing(self, track, mock_player):
        track.play_from(0.5)
        track.update_segments([_segment(0, 0.0, 2.0)], current_t=1.5)
        assert track.is_active
        mock_player.set_position.assert_called_with(pytest.approx(1.5))

    def test_update_segments_when_paused(self, track, mock_player):
        track.update_segments([_segment(0, 0.0, 2.0)], current_t=1.5)
        mock_player.play.assert_not_called()
        assert len(track.segments) == 1
