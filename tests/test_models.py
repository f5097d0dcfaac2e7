"""Tests for Scene / Timeline / NarrationSegment models."""

import pytest

from preview_composer.models.narration import ActiveSegment, NarrationSegment
from preview_composer.models.scene import Scene, TextOverlay
from preview_composer.models.timeline import Timeline

from tests.conftest import make_timeline


class TestScene:
    def test_defaults(self):
        scene = Scene(scene_id="a")
        assert scene.duration_seconds == 2.5
        assert scene.transition_duration_seconds == 0.5
        assert scene.has_selection is False
        assert scene.has_valid_selection is True

    def test_selection_validity(self):
        scene = Scene(scene_id="a", selection_start_seconds=1.0, selection_end_seconds=3.0)
        assert scene.has_valid_selection
        assert scene.selection_length == pytest.approx(2.0)

        bad = Scene(scene_id="b", selection_start_seconds=3.0, selection_end_seconds=3.0)
        assert bad.has_valid_selection is False
        assert bad.selection_length is None

    def test_half_selection_is_invalid(self):
        scene = Scene(scene_id="a", selection_start_seconds=1.0)
        assert scene.has_valid_selection is False
        assert scene.source_window() is None

    def test_source_window_clamped_to_clip(self):
        scene = Scene(
            scene_id="a",
            selection_start_seconds=2.0,
            selection_end_seconds=10.0,
            source_clip_duration_seconds=6.0,
        )
        assert scene.source_window() == (2.0, 6.0)

    def test_source_time_holds_last_frame(self):
        scene = Scene(
            scene_id="a",
            duration_seconds=5.0,
            selection_start_seconds=1.0,
            selection_end_seconds=2.0,
        )
        assert scene.source_time_at(0.5) == pytest.approx(1.5)
        assert scene.source_time_at(4.0) == pytest.approx(2.0)

    def test_image_scene_has_no_source_time(self):
        assert Scene(scene_id="a").source_time_at(1.0) is None

    def test_transition_window_is_inside_scene(self):
        scene = Scene(scene_id="a", duration_seconds=2.0, transition_duration_seconds=0.5)
        assert scene.transition_window() == (0.0, 0.5)

    def test_transition_window_clamped(self):
        scene = Scene(scene_id="a", duration_seconds=0.3, transition_duration_seconds=0.5)
        assert scene.transition_window() == (0.0, 0.3)

    def test_dict_keys(self):
        scene = Scene(scene_id="a", image_ref="img.png", overlay=TextOverlay(text="Hi"))
        d = scene.to_dict()
        assert set(d) == {
            "sceneId", "duration", "transition", "transitionDuration", "image", "imageFit", "text",
        }
        assert d["text"]["content"] == "Hi"
        assert set(d["text"]) == {
            "content", "font", "fontWeight", "color", "position", "fontSize", "transform", "style",
        }

    def test_from_dict(self):
        scene = Scene.from_dict(
            {
                "sceneId": 7,
                "duration": 3,
                "text": {"content": "Hello", "font": "Nanum", "fontWeight": 400},
                "script": "Hello there.",
                "selectionStartSeconds": 0.5,
                "selectionEndSeconds": 1.5,
            },
            order_index=2,
        )
        assert scene.scene_id == "7"
        assert scene.order_index == 2
        assert scene.duration_seconds == 3.0
        assert scene.overlay.font_key == "Nanum:400"
        assert scene.script == "Hello there."
        assert scene.selection_length == pytest.approx(1.0)


class TestTimeline:
    def test_total_is_sum_of_durations(self):
        tl = make_timeline((2.0, 3.0, 1.5))
        assert tl.total_duration == pytest.approx(6.5)

    def test_transitions_not_added(self):
        tl = make_timeline((2.0, 3.0))
        for scene in tl.scenes:
            scene.transition_duration_seconds = 1.0
        assert tl.total_duration == pytest.approx(5.0)

    def test_empty(self):
        tl = Timeline()
        assert tl.total_duration == 0.0
        assert tl.scene_index_at(1.0) == 0

    def test_scene_boundaries(self):
        tl = make_timeline((2.0, 3.0, 1.5))
        assert tl.scene_boundaries() == [(0.0, 2.0), (2.0, 5.0), (5.0, 6.5)]
        assert tl.scene_start_time(1) == pytest.approx(2.0)
        assert tl.scene_end_time(1) == pytest.approx(5.0)

    @pytest.mark.parametrize(
        "t, expected",
        [(-1.0, 0), (0.0, 0), (1.99, 0), (2.0, 1), (4.99, 1), (5.0, 2), (6.5, 2), (100.0, 2)],
    )
    def test_scene_index_at(self, t, expected):
        tl = make_timeline((2.0, 3.0, 1.5))
        assert tl.scene_index_at(t) == expected

    def test_voice_fallback(self):
        tl = make_timeline((1.0, 1.0))
        tl.scenes[1].voice_id = "en-US-GuyNeural"
        assert tl.voice_for(tl.scenes[0]) == tl.voice_id
        assert tl.voice_for(tl.scenes[1]) == "en-US-GuyNeural"

    def test_set_scene_duration(self):
        tl = make_timeline((1.0, 1.0))
        assert tl.set_scene_duration("s2", 4.0) is True
        assert tl.total_duration == pytest.approx(5.0)
        assert tl.set_scene_duration("missing", 4.0) is False
        assert tl.set_scene_duration("s1", 0.0) is False

    def test_payload_round_trip(self):
        tl = make_timeline((2.0, 3.0))
        tl.playback_speed = 1.5
        payload = tl.to_payload()
        assert set(payload) == {"fps", "resolution", "playbackSpeed", "scenes"}

        restored = Timeline.from_payload(payload)
        assert restored.scene_ids() == ["s1", "s2"]
        assert restored.playback_speed == 1.5
        assert [s.order_index for s in restored.scenes] == [0, 1]

    def test_reset(self):
        tl = make_timeline()
        tl.reset()
        assert len(tl) == 0


class TestNarrationSegment:
    def test_end_and_audio(self):
        seg = NarrationSegment("s1", 0, 0, "Hi", b"abc", 1.5, "v::Hi", start_seconds=2.0)
        assert seg.end_seconds == pytest.approx(3.5)
        assert seg.has_audio

    def test_url_only_counts_as_audio(self):
        seg = NarrationSegment("s1", 0, 0, "Hi", b"", 1.0, "k", url="https://cdn/x.mp3")
        assert seg.has_audio

    def test_active_segment_scene_index(self):
        seg = NarrationSegment("s1", 3, 0, "Hi", b"a", 1.0, "k")
        assert ActiveSegment(seg, 0.2, 5).scene_index == 3
