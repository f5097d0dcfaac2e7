"""Scene data models (pure Python, no Qt dependency)."""

from __future__ import annotations

from dataclasses import dataclass, field

from preview_composer.utils.config import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_WEIGHT,
    DEFAULT_SCENE_DURATION,
    DEFAULT_TRANSITION,
    DEFAULT_TRANSITION_DURATION,
)


@dataclass(slots=True)
class TextOverlay:
    """Subtitle / overlay text drawn on top of the scene image."""

    text: str = ""
    font: str = DEFAULT_FONT_FAMILY
    font_weight: int = DEFAULT_FONT_WEIGHT
    color: str = "#FFFFFF"
    position: str = "bottom"
    font_size: int = 48
    transform: dict | None = None  # x, y, width, height, scaleX, scaleY, rotation
    style: dict | None = None      # bold, italic, underline, align

    @property
    def font_key(self) -> str:
        """Key used by the font loader (``family:weight``)."""
        return f"{self.font}:{self.font_weight}"

    def to_dict(self) -> dict:
        return {
            "content": self.text,
            "font": self.font,
            "fontWeight": self.font_weight,
            "color": self.color,
            "position": self.position,
            "fontSize": self.font_size,
            "transform": dict(self.transform) if self.transform else None,
            "style": dict(self.style) if self.style else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> TextOverlay:
        return cls(
            text=data.get("content", ""),
            font=data.get("font", DEFAULT_FONT_FAMILY),
            font_weight=int(data.get("fontWeight", DEFAULT_FONT_WEIGHT)),
            color=data.get("color", "#FFFFFF"),
            position=data.get("position", "bottom"),
            font_size=int(data.get("fontSize", 48)),
            transform=data.get("transform"),
            style=data.get("style"),
        )


@dataclass(slots=True)
class Scene:
    """One unit of the preview: image + narration script + overlay.

    *scene_id* is the durable identity (survives reordering and is used
    for narration cache invalidation). *order_index* is only the current
    position and changes whenever scenes are reordered.
    """

    scene_id: str
    order_index: int = 0
    image_ref: str = ""
    script: str = ""
    duration_seconds: float = DEFAULT_SCENE_DURATION
    transition_kind: str = DEFAULT_TRANSITION
    transition_duration_seconds: float = DEFAULT_TRANSITION_DURATION
    overlay: TextOverlay = field(default_factory=TextOverlay)
    selection_start_seconds: float | None = None
    selection_end_seconds: float | None = None
    source_clip_duration_seconds: float | None = None
    voice_id: str | None = None  # None = timeline voice
    image_fit: str = "cover"

    @property
    def has_selection(self) -> bool:
        return self.selection_start_seconds is not None and self.selection_end_seconds is not None

    @property
    def has_valid_selection(self) -> bool:
        """True when no selection is set, or both bounds are set and ordered."""
        if self.selection_start_seconds is None and self.selection_end_seconds is None:
            return True
        if not self.has_selection:
            return False
        return self.selection_end_seconds > self.selection_start_seconds

    @property
    def selection_length(self) -> float | None:
        if not self.has_selection or not self.has_valid_selection:
            return None
        return self.selection_end_seconds - self.selection_start_seconds

    def source_window(self) -> tuple[float, float] | None:
        """Trimmed (start, end) of the source clip, clamped to the clip length.

        Returns None for image scenes without a selection.
        """
        if not self.has_selection or not self.has_valid_selection:
            return None
        start = max(0.0, self.selection_start_seconds)
        end = self.selection_end_seconds
        if self.source_clip_duration_seconds is not None:
            end = min(end, self.source_clip_duration_seconds)
        if end <= start:
            return None
        return (start, end)

    def source_time_at(self, local_seconds: float) -> float | None:
        """Map a scene-local time to a position inside the trimmed source clip.

        The trimmed clip holds its last frame if the scene outlasts it.
        """
        window = self.source_window()
        if window is None:
            return None
        start, end = window
        return min(start + max(0.0, local_seconds), end)

    def transition_window(self) -> tuple[float, float]:
        """Scene-local (start, end) of the entering transition effect.

        The transition plays from the beginning of the scene and is carved
        out of the scene's own duration; it never extends the scene.
        """
        dur = max(0.0, self.duration_seconds)
        trans = min(max(0.0, self.transition_duration_seconds), dur)
        return (0.0, trans)

    def to_dict(self) -> dict:
        """Render-collaborator payload entry (camelCase keys)."""
        return {
            "sceneId": self.scene_id,
            "duration": self.duration_seconds,
            "transition": self.transition_kind,
            "transitionDuration": self.transition_duration_seconds,
            "image": self.image_ref,
            "imageFit": self.image_fit,
            "text": self.overlay.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict, order_index: int = 0) -> Scene:
        return cls(
            scene_id=str(data["sceneId"]),
            order_index=order_index,
            image_ref=data.get("image", ""),
            script=data.get("script", ""),
            duration_seconds=float(data.get("duration", DEFAULT_SCENE_DURATION)),
            transition_kind=data.get("transition", DEFAULT_TRANSITION),
            transition_duration_seconds=float(
                data.get("transitionDuration", DEFAULT_TRANSITION_DURATION)
            ),
            overlay=TextOverlay.from_dict(data.get("text") or {}),
            selection_start_seconds=data.get("selectionStartSeconds"),
            selection_end_seconds=data.get("selectionEndSeconds"),
            source_clip_duration_seconds=data.get("sourceClipDurationSeconds"),
            voice_id=data.get("voiceId"),
            image_fit=data.get("imageFit", "cover"),
        )
