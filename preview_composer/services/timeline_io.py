"""JSON-based timeline save / load (.preview.json)."""

from __future__ import annotations

import json
from pathlib import Path

from preview_composer.models.scene import Scene
from preview_composer.models.timeline import Timeline

TIMELINE_VERSION = 2


def _scene_to_dict(scene: Scene) -> dict:
    # render payload 필드 + 엔진 전용 필드
    d = scene.to_dict()
    d["script"] = scene.script
    if scene.voice_id:
        d["voiceId"] = scene.voice_id
    if scene.selection_start_seconds is not None:
        d["selectionStartSeconds"] = scene.selection_start_seconds
    if scene.selection_end_seconds is not None:
        d["selectionEndSeconds"] = scene.selection_end_seconds
    if scene.source_clip_duration_seconds is not None:
        d["sourceClipDurationSeconds"] = scene.source_clip_duration_seconds
    return d


def timeline_to_dict(timeline: Timeline) -> dict:
    data = timeline.to_payload()
    data["version"] = TIMELINE_VERSION
    data["voiceId"] = timeline.voice_id
    data["scenes"] = [_scene_to_dict(s) for s in timeline.scenes]
    return data


def save_timeline(timeline: Timeline, path: Path) -> None:
    """Serialize *timeline* to a JSON file."""
    path = Path(path)
    path.write_text(
        json.dumps(timeline_to_dict(timeline), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )


def load_timeline(path: Path) -> Timeline:
    """Deserialize a timeline from a JSON file (v1-v2).

    v1 files stored the scene script in ``text.content`` only.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8-sig"))
    version = data.get("version", 1)

    timeline = Timeline.from_payload(data)
    if version < 2:
        for scene in timeline.scenes:
            if not scene.script:
                scene.script = scene.overlay.text
    return timeline
