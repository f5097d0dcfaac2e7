"""Settings manager for application preferences."""

from typing import Any, Optional

from PySide6.QtCore import QSettings

from preview_composer.utils.config import (
    BGM_PREVIEW_VOLUME,
    DEFAULT_FPS,
    SCENE_TRANSITION_PAUSE_ENABLED,
    TTS_DEFAULT_VOICE,
    MarkupProfile,
    TTSEngine,
)


class SettingsManager:
    """Wrapper around QSettings for type-safe preference management."""

    def __init__(self, settings: Optional[QSettings] = None):
        self._settings = settings if settings is not None else QSettings()

    # ---------------------------------------------------- Narration

    def get_tts_engine(self) -> str:
        """Get the TTS engine (default: edge_tts)."""
        return self._settings.value("narration/engine", TTSEngine.EDGE_TTS, str)

    def set_tts_engine(self, engine: str) -> None:
        if engine not in (TTSEngine.EDGE_TTS, TTSEngine.ELEVENLABS):
            raise ValueError(f"Unknown TTS engine: {engine}")
        self._settings.setValue("narration/engine", engine)

    def get_voice(self) -> str:
        return self._settings.value("narration/voice", TTS_DEFAULT_VOICE, str)

    def set_voice(self, voice_id: str) -> None:
        self._settings.setValue("narration/voice", voice_id)

    def get_scene_transition_pause_enabled(self) -> bool:
        """Whether a pause is appended between scenes (default: off)."""
        return self._settings.value(
            "narration/transition_pause", SCENE_TRANSITION_PAUSE_ENABLED, bool
        )

    def set_scene_transition_pause_enabled(self, enabled: bool) -> None:
        self._settings.setValue("narration/transition_pause", bool(enabled))

    def get_markup_profile(self) -> str:
        """Get the pause-insertion profile (default: v1)."""
        profile = self._settings.value("narration/markup_profile", MarkupProfile.V1, str)
        return profile if profile in (MarkupProfile.V1, MarkupProfile.V2) else MarkupProfile.V1

    def set_markup_profile(self, profile: str) -> None:
        if profile not in (MarkupProfile.V1, MarkupProfile.V2):
            raise ValueError(f"Unknown markup profile: {profile}")
        self._settings.setValue("narration/markup_profile", profile)

    def get_upload_endpoint(self) -> Optional[str]:
        """Narration upload endpoint (None = keep audio in memory only)."""
        url = self._settings.value("narration/upload_endpoint", "", str)
        return url if url else None

    def set_upload_endpoint(self, url: Optional[str]) -> None:
        self._settings.setValue("narration/upload_endpoint", url or "")

    # ---------------------------------------------------- Playback

    def get_bgm_volume(self) -> float:
        return self._settings.value("playback/bgm_volume", BGM_PREVIEW_VOLUME, float)

    def set_bgm_volume(self, volume: float) -> None:
        self._settings.setValue("playback/bgm_volume", max(0.0, min(1.0, float(volume))))

    def get_frame_seek_fps(self) -> int:
        """Get the FPS for frame-by-frame seeking (default: 30)."""
        return self._settings.value("playback/frame_fps", DEFAULT_FPS, int)

    def set_frame_seek_fps(self, fps: int) -> None:
        self._settings.setValue("playback/frame_fps", fps)

    # ---------------------------------------------------- API Keys

    def get_elevenlabs_api_key(self) -> str:
        """Get the ElevenLabs API key."""
        return self._settings.value("api_keys/elevenlabs", "", str)

    def set_elevenlabs_api_key(self, key: str) -> None:
        self._settings.setValue("api_keys/elevenlabs", key)

    # ---------------------------------------------------- General Methods

    def reset_to_defaults(self) -> None:
        """Reset all settings to default values."""
        self._settings.clear()

    def sync(self) -> None:
        """Force synchronization of settings to disk."""
        self._settings.sync()

    def get(self, key: str, default: Any = None) -> Any:
        return self._settings.value(key, default)

    def set(self, key: str, value: Any) -> None:
        self._settings.setValue(key, value)
