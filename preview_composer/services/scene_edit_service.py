"""Pure scene editing operations.

The module-level functions are total and never raise: invalid input returns
the *same* list object, so callers detect a no-op with ``result is scenes``.
Elements are updated copy-on-write; untouched elements keep their identity.
They accept ``Scene`` objects as well as plain payload dicts (camelCase keys).
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from preview_composer.models.scene import Scene

logger = logging.getLogger(__name__)

# Scene 필드 -> payload dict 키
_DICT_KEYS = {
    "selection_start_seconds": "selectionStartSeconds",
    "selection_end_seconds": "selectionEndSeconds",
    "source_clip_duration_seconds": "sourceClipDurationSeconds",
    "script": "script",
    "order_index": "orderIndex",
}


def _is_index(value: Any, length: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < length


def _with_fields(item: Any, **changes: Any) -> Any:
    """Copy of *item* with *changes* applied, or None if it cannot be updated."""
    if isinstance(item, dict):
        updated = dict(item)
        for name, value in changes.items():
            updated[_DICT_KEYS.get(name, name)] = value
        return updated
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        try:
            return dataclasses.replace(item, **changes)
        except TypeError:
            return None
    return None


def _replace_at(scenes: list, index: Any, **changes: Any) -> list:
    if not isinstance(scenes, list) or not _is_index(index, len(scenes)):
        return scenes
    updated = _with_fields(scenes[index], **changes)
    if updated is None:
        return scenes
    result = list(scenes)
    result[index] = updated
    return result


def apply_selection_range(scenes: list, index: int, start: float, end: float) -> list:
    """Set the trim window of ``scenes[index]``."""
    return _replace_at(
        scenes, index, selection_start_seconds=start, selection_end_seconds=end
    )


def apply_original_video_duration(scenes: list, index: int, duration: float) -> list:
    """Record the source clip length of ``scenes[index]``."""
    return _replace_at(scenes, index, source_clip_duration_seconds=duration)


def reorder_by_index_order(items: list, order: Sequence[int]) -> list:
    """Return ``[items[i] for i in order]`` if *order* is a permutation of the indices."""
    if not isinstance(items, list):
        return items
    try:
        order = list(order)
    except TypeError:
        return items
    n = len(items)
    if len(order) != n:
        return items
    if not all(_is_index(i, n) for i in order):
        return items
    if len(set(order)) != n:
        return items
    return [items[i] for i in order]


def _scene_id(item: Any) -> str | None:
    if isinstance(item, dict):
        value = item.get("sceneId", item.get("id"))
        return None if value is None else str(value)
    return getattr(item, "scene_id", None)


# ---------------------------------------------------------------------------
# Diff-returning layer
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class SceneEdit:
    """Result of an edit plus the scenes it changed.

    ``narration_stale`` marks edits after which the changed scenes' cached
    narration no longer matches their script.
    """

    scenes: list
    changed_scene_ids: list[str] = field(default_factory=list)
    narration_stale: bool = False

    @property
    def is_noop(self) -> bool:
        return not self.changed_scene_ids


class SceneEditService:
    """Editing operations on ``Scene`` lists that report what changed."""

    def set_selection_range(self, scenes: list[Scene], index: int, start: float, end: float) -> SceneEdit:
        if not isinstance(start, (int, float)) or not isinstance(end, (int, float)) or end <= start:
            return SceneEdit(scenes)
        result = apply_selection_range(scenes, index, start, end)
        if result is scenes:
            return SceneEdit(scenes)
        return SceneEdit(result, [_scene_id(result[index])])

    def set_original_video_duration(self, scenes: list[Scene], index: int, duration: float) -> SceneEdit:
        if not isinstance(duration, (int, float)) or duration <= 0:
            return SceneEdit(scenes)
        result = apply_original_video_duration(scenes, index, duration)
        if result is scenes:
            return SceneEdit(scenes)
        return SceneEdit(result, [_scene_id(result[index])])

    def reorder(self, scenes: list[Scene], order: Sequence[int]) -> SceneEdit:
        result = reorder_by_index_order(scenes, order)
        if result is scenes:
            return SceneEdit(scenes)

        renumbered = []
        changed = []
        for new_index, item in enumerate(result):
            if getattr(item, "order_index", new_index) != new_index:
                item = _with_fields(item, order_index=new_index) or item
            if _scene_id(scenes[new_index]) != _scene_id(item):
                changed.append(_scene_id(item))
            renumbered.append(item)
        return SceneEdit(renumbered, changed)

    def update_script(self, scenes: list[Scene], scene_id: str, script: str) -> SceneEdit:
        index = self._index_of(scenes, scene_id)
        if index is None or scenes[index].script == script:
            return SceneEdit(scenes)
        result = _replace_at(scenes, index, script=script)
        if result is scenes:
            return SceneEdit(scenes)
        return SceneEdit(result, [scene_id], narration_stale=True)

    def remove_scene(self, scenes: list[Scene], scene_id: str) -> SceneEdit:
        index = self._index_of(scenes, scene_id)
        if index is None:
            return SceneEdit(scenes)
        result = []
        for item in scenes[:index] + scenes[index + 1:]:
            new_index = len(result)
            if getattr(item, "order_index", new_index) != new_index:
                item = _with_fields(item, order_index=new_index) or item
            result.append(item)
        logger.debug(f"Scene removed: {scene_id}")
        return SceneEdit(result, [scene_id], narration_stale=True)

    @staticmethod
    def _index_of(scenes: list, scene_id: str) -> int | None:
        for i, item in enumerate(scenes):
            if _scene_id(item) == scene_id:
                return i
        return None
