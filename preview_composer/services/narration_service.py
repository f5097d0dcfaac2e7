"""
Narration synthesis and caching.

One request per ``voice::markup`` key: a completed key is served from the
cache, a key already in flight is awaited instead of re-requested, and a
failed request leaves nothing behind so it can be retried.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, List, Optional

from preview_composer.models.narration import NarrationSegment
from preview_composer.models.timeline import Timeline
from preview_composer.services import narration_logger
from preview_composer.services.narration_cache import NarrationCache
from preview_composer.services.narration_markup import build_scene_markup, make_tts_key
from preview_composer.services.narration_uploader import NarrationUploader, UploadError
from preview_composer.services.tts_service import SpeechSynthesizer, SynthesisError
from preview_composer.utils.config import (
    SCENE_TRANSITION_PAUSE_ENABLED,
    TTS_MAX_CONCURRENT_PARTS,
    MarkupProfile,
)
from preview_composer.utils.generation import GenerationCounter

logger = logging.getLogger(__name__)


class NarrationService:
    """Owns the narration cache, the in-flight registry and scene generations."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        cache: NarrationCache | None = None,
        uploader: NarrationUploader | None = None,
        generations: GenerationCounter | None = None,
        max_concurrent_parts: int = TTS_MAX_CONCURRENT_PARTS,
        transition_pause_enabled: bool = SCENE_TRANSITION_PAUSE_ENABLED,
        markup_profile: str = MarkupProfile.V1,
        on_scene_duration: Optional[Callable[[str, float], None]] = None,
    ):
        self._synthesizer = synthesizer
        self._cache = cache if cache is not None else NarrationCache()
        self._uploader = uploader
        self._generations = generations if generations is not None else GenerationCounter()
        self._max_concurrent_parts = max(1, max_concurrent_parts)
        self.transition_pause_enabled = transition_pause_enabled
        self.markup_profile = markup_profile
        self.on_scene_duration = on_scene_duration

    @property
    def cache(self) -> NarrationCache:
        return self._cache

    @property
    def generations(self) -> GenerationCounter:
        return self._generations

    def scene_markups(self, timeline: Timeline, scene_index: int) -> List[str]:
        return build_scene_markup(
            timeline,
            scene_index,
            transition_pause_enabled=self.transition_pause_enabled,
            profile=self.markup_profile,
        )

    # -------------------------------------------------------- Single request

    async def synthesize(
        self,
        voice_id: str,
        markup: str,
        scene_id: str,
        scene_index: int = 0,
        part_index: int = 0,
    ) -> NarrationSegment | None:
        """Return the narration segment for ``voice::markup``.

        Returns None when the request was superseded (its scene was
        invalidated) before the result arrived.

        Raises:
            SynthesisError: If the synthesizer fails. Nothing is cached.
        """
        key = make_tts_key(voice_id, markup)

        cached = self._cache.get(key)
        if cached is not None:
            self._cache.add_owner(key, scene_id)
            return cached

        pending = self._cache.get_in_flight(key)
        if pending is not None:
            self._cache.add_owner(key, scene_id)
            return await asyncio.shield(pending)

        token = self._generations.current(scene_id)
        task = asyncio.ensure_future(
            self._request(key, voice_id, markup, scene_id, scene_index, part_index, token)
        )
        self._cache.register_in_flight(key, scene_id, task)
        return await asyncio.shield(task)

    async def _request(self, key, voice_id, markup, scene_id, scene_index, part_index, token):
        narration_logger.log_request(key, scene_id)
        this_task = asyncio.current_task()
        try:
            try:
                result = await self._synthesizer.synthesize(voice_id, markup)
            except SynthesisError as e:
                narration_logger.log_failure(key, e)
                logger.warning(f"Narration synthesis failed for scene {scene_id} part {part_index}: {e}")
                raise

            segment = NarrationSegment(
                scene_id=scene_id,
                scene_index=scene_index,
                part_index=part_index,
                markup=markup,
                audio_data=result.audio_bytes,
                duration_seconds=result.duration_seconds,
                cache_key=key,
            )

            if not self._generations.is_current(token):
                return self._drop_superseded(key, scene_id)

            if self._uploader is not None:
                try:
                    segment.url = await self._uploader.upload(
                        result.audio_bytes, scene_id, mime_type=result.mime_type
                    )
                except UploadError as e:
                    # 업로드 실패해도 메모리 오디오로 재생 가능
                    logger.warning(f"Narration upload failed for scene {scene_id}: {e}")

            with self._cache.lock:
                if not self._generations.is_current(token):
                    return self._drop_superseded(key, scene_id)
                self._cache.put(segment)
        finally:
            # 캐시에 들어가거나 실패할 때까지 in-flight 유지
            self._cache.release_in_flight(key, this_task)

        narration_logger.log_result(key, segment.duration_seconds, len(segment.audio_data))
        return segment

    @staticmethod
    def _drop_superseded(key: str, scene_id: str) -> None:
        narration_logger.log_dropped(key)
        logger.debug(f"Dropped superseded narration for scene {scene_id}")
        return None

    # -------------------------------------------------------- Scene / timeline

    async def ensure_scene(
        self,
        timeline: Timeline,
        scene_index: int,
        on_scene_duration: Optional[Callable[[str, float], None]] = None,
    ) -> List[NarrationSegment]:
        """Synthesize every part of one scene (bounded concurrency).

        Failed parts are skipped. Returns [] if the scene was invalidated
        while its parts were being synthesized.
        """
        if not (0 <= scene_index < len(timeline.scenes)):
            return []
        scene = timeline.scenes[scene_index]
        markups = self.scene_markups(timeline, scene_index)
        if not markups:
            return []

        voice_id = timeline.voice_for(scene)
        token = self._generations.current(scene.scene_id)
        semaphore = asyncio.Semaphore(self._max_concurrent_parts)

        async def _one(part_index: int, markup: str) -> NarrationSegment | None:
            async with semaphore:
                try:
                    return await self.synthesize(
                        voice_id, markup, scene.scene_id, scene_index, part_index
                    )
                except SynthesisError:
                    return None

        results = await asyncio.gather(*(_one(i, m) for i, m in enumerate(markups)))
        if not self._generations.is_current(token):
            return []

        segments = [s for s in results if s is not None]
        report = on_scene_duration or self.on_scene_duration
        if segments and len(segments) == len(markups) and report is not None:
            report(scene.scene_id, sum(s.duration_seconds for s in segments))
        return segments

    async def ensure_timeline(
        self,
        timeline: Timeline,
        on_progress: Optional[Callable[[int, int], None]] = None,
        is_cancelled: Optional[Callable[[], bool]] = None,
        on_scene_duration: Optional[Callable[[str, float], None]] = None,
    ) -> List[NarrationSegment]:
        """Ensure narration for every scene and return the segment table."""
        total = len(timeline.scenes)
        for index in range(total):
            if is_cancelled is not None and is_cancelled():
                logger.info("Timeline narration cancelled")
                break
            await self.ensure_scene(timeline, index, on_scene_duration)
            if on_progress:
                on_progress(index + 1, total)
        return self.build_segment_table(timeline)

    def build_segment_table(self, timeline: Timeline) -> List[NarrationSegment]:
        """Lay cached segments end to end using their real durations.

        Scenes without cached narration occupy their nominal duration. The
        returned segments are positioned copies; cached objects are not
        modified.
        """
        table: List[NarrationSegment] = []
        offset = 0.0
        for index, scene in enumerate(timeline.scenes):
            voice_id = timeline.voice_for(scene)
            cached = [
                self._cache.get(make_tts_key(voice_id, m))
                for m in self.scene_markups(timeline, index)
            ]
            cached = [c for c in cached if c is not None]
            if not cached:
                offset += timeline.effective_duration(scene)
                continue
            for part_index, seg in enumerate(cached):
                table.append(replace(
                    seg,
                    scene_id=scene.scene_id,
                    scene_index=index,
                    part_index=part_index,
                    start_seconds=offset,
                ))
                offset += seg.duration_seconds
        return table

    def cached_scene_duration(self, timeline: Timeline, scene_id: str) -> float | None:
        """Spoken length of the scene if every part of its current script is cached."""
        index = timeline.index_of(scene_id)
        if index is None:
            return None
        voice_id = timeline.voice_for(timeline.scenes[index])
        markups = self.scene_markups(timeline, index)
        cached = [self._cache.get(make_tts_key(voice_id, m)) for m in markups]
        if not cached or any(c is None for c in cached):
            return None
        return sum(c.duration_seconds for c in cached)

    # -------------------------------------------------------- Invalidation

    def invalidate_scene(self, scene_id: str) -> int:
        """Drop the scene's cached/in-flight narration and supersede its requests."""
        with self._cache.lock:
            self._generations.bump(scene_id)
            return self._cache.invalidate_scene(scene_id)

    def prune(self, timeline: Timeline) -> int:
        return self._cache.prune(timeline.scene_ids())

    def reset(self) -> None:
        """Forget everything (timeline reset)."""
        with self._cache.lock:
            self._generations.reset()
            self._cache.clear()
