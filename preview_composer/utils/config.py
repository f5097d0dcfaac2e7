"""Application configuration constants."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "PreviewComposer"
APP_VERSION = "0.3.0"
ORG_NAME = "PreviewComposer"

# 세션 로그 / 임시 오디오 위치
USER_DATA_DIR = Path.home() / f".{APP_NAME.lower()}"

# Timeline defaults
DEFAULT_FPS = 30
DEFAULT_RESOLUTION = "1080x1920"  # 숏폼 세로 영상
DEFAULT_SCENE_DURATION = 2.5
DEFAULT_TRANSITION = "fade"
DEFAULT_TRANSITION_DURATION = 0.5
IMAGE_FITS = ("cover", "contain", "fill")

# Transport
TICK_INTERVAL_MS = 16  # ~60fps

# Script / markup
SCRIPT_PART_DELIMITER = "|||"
PAUSE_TAG = "[pause]"
PAUSE_SHORT_TAG = "[pause short]"
PAUSE_LONG_TAG = "[pause long]"
TTS_KEY_SEPARATOR = "::"
PUNCT_PAUSE_SKIP_CHARS = 7  # v2 profile: 이 길이 이하 문장 뒤에는 pause 생략

# 씬 전환 pause는 현재 비활성화 상태 (로직은 유지)
SCENE_TRANSITION_PAUSE_ENABLED = False


class MarkupProfile:
    V1 = "v1"
    V2 = "v2"


# TTS settings
TTS_DEFAULT_VOICE = "ko-KR-SunHiNeural"
TTS_DEFAULT_RATE = "+0%"
TTS_REQUEST_TIMEOUT = 30.0
TTS_MAX_CONCURRENT_PARTS = 5
TTS_VOICES = {
    "Korean": {
        "Female": ["ko-KR-SunHiNeural"],
        "Male": ["ko-KR-InJoonNeural", "ko-KR-HyunsuMultilingualNeural"]
    },
    "English": {
        "Female": ["en-US-JennyNeural", "en-US-AriaNeural"],
        "Male": ["en-US-GuyNeural", "en-US-ChristopherNeural"]
    }
}


# TTS Engine types
class TTSEngine:
    EDGE_TTS = "edge_tts"
    ELEVENLABS = "elevenlabs"


# ElevenLabs default voices (official starter voices)
ELEVENLABS_DEFAULT_VOICES = {
    "Rachel (Female)": "21m00Tcm4TlvDq8ikWAM",
    "Bella (Female)": "EXAVITQu4vr4xnSDxMaL",
    "Antoni (Male)": "ErXwobaYiN019PkySvjV",
    "Josh (Male)": "TxGEqnHWrfWFTfGW9XjX",
    "Adam (Male)": "pNInz6obpgDQGcFmaJgB",
    "Sam (Male)": "yoZ06aMxZJJ28mfd3POQ",
}

# Narration upload
UPLOAD_MAX_FILE_SIZE_MB = 10
UPLOAD_ALLOWED_MIME_TYPES = ("audio/mpeg", "audio/mp3")

# BGM
BGM_PREVIEW_VOLUME = 0.5  # 미리보기에서 볼륨 낮춤
BGM_TEMPLATES = {
    "calm": {"name": "Calm Piano", "url": "https://cdn.example.com/bgm/calm.mp3"},
    "upbeat": {"name": "Upbeat Pop", "url": "https://cdn.example.com/bgm/upbeat.mp3"},
    "lofi": {"name": "Lo-Fi Beat", "url": "https://cdn.example.com/bgm/lofi.mp3"},
}

# Fonts
DEFAULT_FONT_FAMILY = "Pretendard"
DEFAULT_FONT_WEIGHT = 700
