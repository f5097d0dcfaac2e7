"""Tests for narration markup generation."""

import pytest

from preview_composer.models.scene import Scene, TextOverlay
from preview_composer.models.timeline import Timeline
from preview_composer.services.narration_markup import (
    build_scene_markup,
    make_markup_from_plain_text,
    make_tts_key,
    markup_to_plain_text,
    split_script_parts,
    strip_user_pause_tags,
)
from preview_composer.utils.config import MarkupProfile


class TestSplitScriptParts:
    def test_single_part(self):
        assert split_script_parts("Hello.") == ["Hello."]

    def test_delimiter(self):
        assert split_script_parts("First ||| Second|||Third") == ["First", "Second", "Third"]

    def test_empty_parts_dropped(self):
        assert split_script_parts("A |||   ||| B") == ["A", "B"]

    def test_blank(self):
        assert split_script_parts("   ") == []
        assert split_script_parts("") == []


class TestStripUserPauseTags:
    def test_removes_all_variants(self):
        text = "Hi [pause] there [PAUSE LONG] you [pause short] ok"
        assert strip_user_pause_tags(text) == "Hi there you ok"


class TestMakeMarkup:
    def test_scenario_e(self):
        assert (
            make_markup_from_plain_text("좋아! 지금", add_scene_transition_pause=True)
            == "좋아! [pause] 지금 [pause long]"
        )

    def test_pause_without_space(self):
        assert make_markup_from_plain_text("Hi.There") == "Hi. [pause] There"

    def test_no_pause_at_end(self):
        assert make_markup_from_plain_text("The end.") == "The end."

    def test_user_pause_tags_ignored(self):
        assert make_markup_from_plain_text("Wait [pause long] now") == "Wait now"

    def test_only_pause_tags_is_empty(self):
        assert make_markup_from_plain_text("[pause] [pause long]") == ""

    def test_every_sentence_end(self):
        assert (
            make_markup_from_plain_text("One. Two? Three!")
            == "One. [pause] Two? [pause] Three!"
        )

    def test_v2_skips_short_sentences(self):
        markup = make_markup_from_plain_text("Hi. Hello world! End", profile=MarkupProfile.V2)
        assert markup == "Hi. Hello world! [pause] End"

    def test_v2_transition_is_short(self):
        markup = make_markup_from_plain_text(
            "Hello", add_scene_transition_pause=True, profile=MarkupProfile.V2
        )
        assert markup == "Hello [pause short]"

    def test_unknown_profile(self):
        with pytest.raises(ValueError):
            make_markup_from_plain_text("Hi", profile="v9")


class TestBuildSceneMarkup:
    def _timeline(self):
        return Timeline(scenes=[
            Scene(scene_id="a", script="좋아! 지금 ||| 둘째"),
            Scene(scene_id="b", script="마지막."),
        ])

    def test_transition_pause_disabled_by_default(self):
        assert build_scene_markup(self._timeline(), 0) == ["좋아! [pause] 지금", "둘째"]

    def test_transition_pause_enabled(self):
        tl = self._timeline()
        assert build_scene_markup(tl, 0, transition_pause_enabled=True) == [
            "좋아! [pause] 지금 [pause long]",
            "둘째 [pause long]",
        ]
        # 마지막 씬의 마지막 파트에는 붙이지 않음
        assert build_scene_markup(tl, 1, transition_pause_enabled=True) == ["마지막."]

    def test_falls_back_to_overlay_text(self):
        tl = Timeline(scenes=[Scene(scene_id="a", overlay=TextOverlay(text="자막"))])
        assert build_scene_markup(tl, 0) == ["자막"]

    def test_out_of_range(self):
        assert build_scene_markup(self._timeline(), 5) == []
        assert build_scene_markup(None, 0) == []


class TestKeysAndPlainText:
    def test_tts_key(self):
        assert make_tts_key("ko-KR-SunHiNeural", "안녕") == "ko-KR-SunHiNeural::안녕"

    def test_different_markup_different_key(self):
        assert make_tts_key("v", "a") != make_tts_key("v", "a [pause long]")

    def test_markup_to_plain_text(self):
        assert markup_to_plain_text("좋아! [pause] 지금 [pause long]") == "좋아! 지금."

    def test_plain_pause_becomes_comma(self):
        assert markup_to_plain_text("Well [pause short] ok") == "Well, ok"
