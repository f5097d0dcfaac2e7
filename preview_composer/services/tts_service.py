"""
Speech synthesis collaborators.

``SpeechSynthesizer`` is the narrow interface the narration service talks to;
``EdgeTTSSynthesizer`` implements it with edge-tts and keeps the audio in
memory (nothing is written to disk).
"""
from __future__ import annotations

import asyncio
import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

import edge_tts
from mutagen import MutagenError
from mutagen.mp3 import MP3

from preview_composer.models.narration import SynthesisResult
from preview_composer.services.narration_markup import markup_to_plain_text
from preview_composer.utils.config import TTS_DEFAULT_RATE, TTS_REQUEST_TIMEOUT


class SynthesisError(Exception):
    """Network, quota or decode failure while synthesizing narration."""


class SynthesisTimeoutError(SynthesisError):
    """The synthesis request did not finish in time."""


@dataclass
class Voice:
    """Represents a TTS voice."""
    name: str          # e.g., "ko-KR-SunHiNeural"
    gender: str        # "Male" or "Female"
    language: str      # e.g., "ko-KR"
    display_name: str  # e.g., "SunHi (Female)"


def measure_mp3_duration(audio_bytes: bytes) -> float:
    """Duration of an in-memory MP3 payload in seconds.

    Raises:
        SynthesisError: If the payload is not decodable MP3.
    """
    if not audio_bytes:
        raise SynthesisError("Empty audio payload")
    try:
        return float(MP3(io.BytesIO(audio_bytes)).info.length)
    except MutagenError as e:
        raise SynthesisError(f"Audio payload is not valid MP3: {e}") from e


def format_rate(speed: float) -> str:
    """
    Convert speed multiplier to edge-tts rate format.

    Args:
        speed: Speed multiplier (0.5 = 50%, 1.0 = 100%, 2.0 = 200%)

    Returns:
        Rate string (e.g., "+0%", "+50%", "-50%")
    """
    if speed <= 0:
        raise ValueError("Speed must be positive")

    # 1.0 -> +0%, 1.5 -> +50%, 0.5 -> -50%
    percent_change = int(round((speed - 1.0) * 100))
    if percent_change >= 0:
        return f"+{percent_change}%"
    return f"{percent_change}%"


class SpeechSynthesizer(ABC):
    """Turns one narration markup string into audio."""

    @abstractmethod
    async def synthesize(self, voice_id: str, markup: str) -> SynthesisResult:
        """Return audio bytes plus the real spoken duration.

        Raises:
            SynthesisError: On network/quota/decode failure.
        """


class EdgeTTSSynthesizer(SpeechSynthesizer):
    """Speech synthesis using edge-tts.

    edge-tts takes plain text only, so pause tags in the markup are rendered
    as punctuation before the request.
    """

    def __init__(self, rate: str = TTS_DEFAULT_RATE, timeout: float = TTS_REQUEST_TIMEOUT):
        self._rate = rate
        self._timeout = timeout

    async def _stream_audio(self, text: str, voice_id: str) -> bytes:
        communicate = edge_tts.Communicate(text, voice_id, rate=self._rate)
        buf = bytearray()
        async for chunk in communicate.stream():
            if chunk["type"] == "audio":
                buf.extend(chunk["data"])
        return bytes(buf)

    async def synthesize(self, voice_id: str, markup: str) -> SynthesisResult:
        text = markup_to_plain_text(markup)
        if not text:
            raise ValueError("Text cannot be empty")

        try:
            audio = await asyncio.wait_for(
                self._stream_audio(text, voice_id),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise SynthesisTimeoutError(
                f"TTS generation timed out after {self._timeout}s"
            ) from e
        except Exception as e:
            raise SynthesisError(f"TTS generation failed: {e}") from e

        return SynthesisResult(audio_bytes=audio, duration_seconds=measure_mp3_duration(audio))


async def list_voices(language: str | None = None) -> List[Voice]:
    """
    List available edge-tts voices.

    Args:
        language: Filter by language code (e.g., "ko", "en")
    """
    voices_list = await edge_tts.list_voices()
    result = []

    for voice_data in voices_list:
        voice_locale = voice_data.get("Locale", "")
        voice_name = voice_data.get("ShortName", "")
        voice_gender = voice_data.get("Gender", "")

        if language and not voice_locale.lower().startswith(language.lower()):
            continue

        # "SunHiNeural" -> "SunHi"
        display_base = voice_name.split("-")[-1].replace("Neural", "")
        result.append(Voice(
            name=voice_name,
            gender=voice_gender,
            language=voice_locale,
            display_name=f"{display_base} ({voice_gender})",
        ))

    return result
