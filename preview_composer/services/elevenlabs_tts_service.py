"""ElevenLabs TTS service using the REST API."""

from __future__ import annotations

import asyncio
import json
import re
import urllib.error
import urllib.request

from preview_composer.models.narration import SynthesisResult
from preview_composer.services.tts_service import (
    SpeechSynthesizer,
    SynthesisError,
    measure_mp3_duration,
)
from preview_composer.utils.config import ELEVENLABS_DEFAULT_VOICES, TTS_REQUEST_TIMEOUT

# pause 태그 -> ElevenLabs break 길이(초)
PAUSE_BREAK_SECONDS = {
    "": 0.4,
    "short": 0.25,
    "long": 0.9,
}
_PAUSE_RE = re.compile(r"\s*\[pause(?:\s+(short|long))?\]\s*", re.IGNORECASE)


def markup_to_break_tags(markup: str) -> str:
    """Replace pause tags with ``<break time="…s" />`` directives."""
    def _sub(match: re.Match) -> str:
        kind = (match.group(1) or "").lower()
        return f' <break time="{PAUSE_BREAK_SECONDS[kind]}s" /> '

    return _PAUSE_RE.sub(_sub, markup).strip()


class ElevenLabsTTSService(SpeechSynthesizer):
    """Text-to-speech generation using the ElevenLabs API."""

    BASE_URL = "https://api.elevenlabs.io/v1"

    def __init__(
        self,
        api_key: str,
        speed: float = 1.0,
        timeout: float = TTS_REQUEST_TIMEOUT,
        model_id: str = "eleven_multilingual_v2",
    ):
        self._api_key = api_key
        self._speed = speed
        self._timeout = timeout
        self._model_id = model_id

    def generate_speech(self, text: str, voice_id: str) -> bytes:
        """Blocking request for one text; returns MP3 bytes."""
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        url = f"{self.BASE_URL}/text-to-speech/{voice_id}"
        payload = {
            "text": text,
            "model_id": self._model_id,
            "voice_settings": {
                "stability": 0.5,
                "similarity_boost": 0.75,
                "speed": self._speed,
            },
        }

        data = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(url, data=data, method="POST")
        req.add_header("xi-api-key", self._api_key)
        req.add_header("Content-Type", "application/json")
        req.add_header("Accept", "audio/mpeg")

        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as response:
                return response.read()
        except urllib.error.HTTPError as e:
            if e.code == 401:
                raise SynthesisError(
                    "ElevenLabs API 키가 유효하지 않습니다. 설정에서 확인하세요."
                ) from e
            if e.code == 429:
                raise SynthesisError(
                    "ElevenLabs 사용량 한도를 초과했습니다. 잠시 후 다시 시도하세요."
                ) from e
            body = ""
            try:
                body = e.read().decode("utf-8", errors="replace")
            except OSError:
                pass
            raise SynthesisError(f"ElevenLabs API error ({e.code}): {body[:200]}") from e
        except (urllib.error.URLError, TimeoutError) as e:
            raise SynthesisError(f"ElevenLabs network error: {e}") from e

    async def synthesize(self, voice_id: str, markup: str) -> SynthesisResult:
        text = markup_to_break_tags(markup)
        audio = await asyncio.to_thread(self.generate_speech, text, voice_id)
        return SynthesisResult(audio_bytes=audio, duration_seconds=measure_mp3_duration(audio))

    def list_voices(self) -> dict[str, str]:
        """Fetch available voices from the ElevenLabs API.

        Returns dict of {display_name: voice_id}.
        Falls back to hardcoded defaults on error.
        """
        url = f"{self.BASE_URL}/voices"
        req = urllib.request.Request(url)
        req.add_header("xi-api-key", self._api_key)

        try:
            with urllib.request.urlopen(req, timeout=10) as response:
                data = json.loads(response.read().decode("utf-8"))
        except (OSError, ValueError):
            return dict(ELEVENLABS_DEFAULT_VOICES)

        voices: dict[str, str] = {}
        for voice in data.get("voices", []):
            vid = voice.get("voice_id", "")
            if vid:
                voices[voice.get("name", "Unknown")] = vid
        return voices if voices else dict(ELEVENLABS_DEFAULT_VOICES)

    @staticmethod
    def validate_api_key(api_key: str) -> bool:
        """Quick validation: GET /v1/user with the key."""
        if not api_key or not api_key.strip():
            return False

        req = urllib.request.Request("https://api.elevenlabs.io/v1/user")
        req.add_header("xi-api-key", api_key)
        try:
            with urllib.request.urlopen(req, timeout=10) as response:
                return response.status == 200
        except OSError:
            return False
