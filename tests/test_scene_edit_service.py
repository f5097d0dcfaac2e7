"""Tests for pure scene editing operations and edit diffs."""

import pytest

from preview_composer.models.scene import Scene
from preview_composer.services.scene_edit_service import (
    SceneEditService,
    apply_original_video_duration,
    apply_selection_range,
    reorder_by_index_order,
)


def _dict_scenes():
    return [
        {"id": "s1", "script": "a", "selectionStartSeconds": 0, "selectionEndSeconds": 1},
        {"id": "s2", "script": "b", "selectionStartSeconds": 1, "selectionEndSeconds": 2},
    ]


def _scenes():
    return [Scene(scene_id=f"s{i + 1}", order_index=i, script=f"script {i + 1}") for i in range(3)]


class TestApplySelectionRange:
    def test_scenario_a(self):
        scenes = _dict_scenes()
        result = apply_selection_range(scenes, 1, 3, 6)
        assert result is not scenes
        assert result[0] is scenes[0]
        assert result[1] == {
            "id": "s2", "script": "b", "selectionStartSeconds": 3, "selectionEndSeconds": 6,
        }
        # 원본은 변경되지 않음
        assert scenes[1]["selectionStartSeconds"] == 1

    def test_scenario_b(self):
        scenes = [{"id": "s1", "script": "a"}]
        assert apply_selection_range(scenes, 10, 2, 4) is scenes

    @pytest.mark.parametrize("index", [-1, 3, 1.0, "1", None, True])
    def test_invalid_index_is_identity(self, index):
        scenes = _scenes()
        assert apply_selection_range(scenes, index, 0.0, 1.0) is scenes

    def test_dataclass_scenes(self):
        scenes = _scenes()
        result = apply_selection_range(scenes, 1, 0.5, 2.5)
        assert result[1].selection_start_seconds == 0.5
        assert result[1].selection_end_seconds == 2.5
        assert result[0] is scenes[0]
        assert result[2] is scenes[2]
        assert scenes[1].selection_start_seconds is None

    def test_not_a_list(self):
        assert apply_selection_range(None, 0, 0, 1) is None


class TestApplyOriginalVideoDuration:
    def test_sets_field(self):
        scenes = _scenes()
        result = apply_original_video_duration(scenes, 0, 12.5)
        assert result[0].source_clip_duration_seconds == 12.5
        assert result[1] is scenes[1]

    def test_dict_key(self):
        scenes = _dict_scenes()
        assert apply_original_video_duration(scenes, 0, 7.0)[0]["sourceClipDurationSeconds"] == 7.0

    def test_invalid_index(self):
        scenes = _scenes()
        assert apply_original_video_duration(scenes, 5, 1.0) is scenes


class TestReorder:
    def test_scenario_c(self):
        assert reorder_by_index_order(["a", "b", "c"], [2, 0, 1]) == ["c", "a", "b"]

    def test_scenario_d(self):
        items = ["a", "b", "c"]
        assert reorder_by_index_order(items, [0, 0, 1]) is items

    @pytest.mark.parametrize("n", [0, 1, 2, 5])
    def test_identity_permutation(self, n):
        items = [f"x{i}" for i in range(n)]
        assert reorder_by_index_order(items, list(range(n))) == items

    @pytest.mark.parametrize("order", [[0, 1], [0, 1, 3], [0, 1, -1], [0, 1, "2"], None])
    def test_invalid_order_is_identity(self, order):
        items = ["a", "b", "c"]
        assert reorder_by_index_order(items, order) is items

    def test_elements_keep_identity(self):
        scenes = _scenes()
        result = reorder_by_index_order(scenes, [1, 2, 0])
        assert result[0] is scenes[1]


class TestSceneEditService:
    def test_selection_diff(self):
        scenes = _scenes()
        edit = SceneEditService().set_selection_range(scenes, 2, 1.0, 3.0)
        assert edit.changed_scene_ids == ["s3"]
        assert edit.narration_stale is False

    def test_selection_rejects_inverted_range(self):
        scenes = _scenes()
        edit = SceneEditService().set_selection_range(scenes, 0, 3.0, 3.0)
        assert edit.is_noop
        assert edit.scenes is scenes

    def test_video_duration_rejects_non_positive(self):
        assert SceneEditService().set_original_video_duration(_scenes(), 0, 0).is_noop

    def test_reorder_renumbers_and_reports_moved(self):
        scenes = _scenes()
        edit = SceneEditService().reorder(scenes, [0, 2, 1])
        assert [s.scene_id for s in edit.scenes] == ["s1", "s3", "s2"]
        assert [s.order_index for s in edit.scenes] == [0, 1, 2]
        assert sorted(edit.changed_scene_ids) == ["s2", "s3"]
        assert edit.scenes[0] is scenes[0]

    def test_reorder_identity_is_noop(self):
        assert SceneEditService().reorder(_scenes(), [0, 1, 2]).is_noop

    def test_update_script_marks_stale(self):
        edit = SceneEditService().update_script(_scenes(), "s2", "new text")
        assert edit.changed_scene_ids == ["s2"]
        assert edit.narration_stale
        assert edit.scenes[1].script == "new text"

    def test_update_script_unchanged_is_noop(self):
        assert SceneEditService().update_script(_scenes(), "s2", "script 2").is_noop

    def test_update_unknown_scene(self):
        assert SceneEditService().update_script(_scenes(), "zz", "x").is_noop

    def test_remove_scene(self):
        edit = SceneEditService().remove_scene(_scenes(), "s1")
        assert [s.scene_id for s in edit.scenes] == ["s2", "s3"]
        assert [s.order_index for s in edit.scenes] == [0, 1]
        assert edit.changed_scene_ids == ["s1"]
        assert edit.narration_stale
