"""Timeline model: ordered scenes plus global playback parameters."""

from __future__ import annotations

from dataclasses import dataclass, field

from preview_composer.models.scene import Scene
from preview_composer.utils.config import DEFAULT_FPS, DEFAULT_RESOLUTION, TTS_DEFAULT_VOICE


@dataclass(slots=True)
class Timeline:
    """Ordered scene list of the editing session.

    Total duration is the plain sum of scene durations; transitions are
    rendered inside a scene's own window and are never added on top.
    """

    frames_per_second: int = DEFAULT_FPS
    resolution: str = DEFAULT_RESOLUTION
    playback_speed: float = 1.0
    voice_id: str = TTS_DEFAULT_VOICE
    scenes: list[Scene] = field(default_factory=list)

    # -------------------------------------------------------- Queries

    @property
    def scene_count(self) -> int:
        return len(self.scenes)

    @property
    def total_duration(self) -> float:
        return sum(self.effective_duration(s) for s in self.scenes)

    def scene_ids(self) -> list[str]:
        return [s.scene_id for s in self.scenes]

    def index_of(self, scene_id: str) -> int | None:
        for i, scene in enumerate(self.scenes):
            if scene.scene_id == scene_id:
                return i
        return None

    def voice_for(self, scene: Scene) -> str:
        """Per-scene voice, falling back to the timeline voice."""
        return scene.voice_id or self.voice_id

    def is_last_scene(self, index: int) -> bool:
        return index >= len(self.scenes) - 1

    def effective_duration(self, scene: Scene) -> float:
        """Timeline time the scene occupies.

        A selection only picks the source-media window; the entering
        transition lives inside this same window.
        """
        return max(0.0, scene.duration_seconds)

    # -------------------------------------------------------- Time mapping

    def scene_start_time(self, index: int) -> float:
        """Cumulative start time of the scene at *index*."""
        index = max(0, min(index, len(self.scenes)))
        return sum(max(0.0, self.scenes[i].duration_seconds) for i in range(index))

    def scene_end_time(self, index: int) -> float:
        if not (0 <= index < len(self.scenes)):
            return self.total_duration
        return self.scene_start_time(index) + max(0.0, self.scenes[index].duration_seconds)

    def scene_boundaries(self) -> list[tuple[float, float]]:
        """Return [(start, end), ...] for every scene, in timeline order."""
        boundaries = []
        offset = 0.0
        for scene in self.scenes:
            dur = max(0.0, scene.duration_seconds)
            boundaries.append((offset, offset + dur))
            offset += dur
        return boundaries

    def scene_index_at(self, t: float) -> int:
        """Index of the scene whose window contains *t*.

        Windows are [start, end) except the last scene, which includes its
        end. Times before 0 map to the first scene, times past the end to
        the last scene. An empty timeline returns 0.
        """
        if not self.scenes:
            return 0
        if t <= 0:
            return 0
        offset = 0.0
        for i, scene in enumerate(self.scenes):
            offset += max(0.0, scene.duration_seconds)
            if t < offset:
                return i
        return len(self.scenes) - 1

    # -------------------------------------------------------- Editing

    def renumber(self) -> None:
        """Re-assign order_index from the current list positions."""
        for i, scene in enumerate(self.scenes):
            scene.order_index = i

    def sort_by_order(self) -> None:
        self.scenes.sort(key=lambda s: s.order_index)

    def set_scene_duration(self, scene_id: str, duration_seconds: float) -> bool:
        """Update a scene's duration (e.g. to the real narration length)."""
        idx = self.index_of(scene_id)
        if idx is None or duration_seconds <= 0:
            return False
        self.scenes[idx].duration_seconds = duration_seconds
        return True

    def reset(self) -> None:
        self.scenes = []
        self.playback_speed = 1.0

    def __len__(self) -> int:
        return len(self.scenes)

    def __iter__(self):
        return iter(self.scenes)

    def __getitem__(self, index: int) -> Scene:
        return self.scenes[index]

    # -------------------------------------------------------- Payload

    def to_payload(self) -> dict:
        """Timeline payload consumed by the render collaborator."""
        return {
            "fps": self.frames_per_second,
            "resolution": self.resolution,
            "playbackSpeed": self.playback_speed,
            "scenes": [s.to_dict() for s in self.scenes],
        }

    @classmethod
    def from_payload(cls, data: dict) -> Timeline:
        scenes = [
            Scene.from_dict(d, order_index=i)
            for i, d in enumerate(data.get("scenes", []))
        ]
        return cls(
            frames_per_second=int(data.get("fps", DEFAULT_FPS)),
            resolution=data.get("resolution", DEFAULT_RESOLUTION),
            playback_speed=float(data.get("playbackSpeed", 1.0)),
            voice_id=data.get("voiceId", TTS_DEFAULT_VOICE),
            scenes=scenes,
        )
