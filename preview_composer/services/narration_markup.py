"""
Narration markup generation.

Markup is the synthesis-only form of a scene script: user-typed pause tags are
removed and pause markers are inserted after sentence punctuation. It is never
shown to the user.
"""
from __future__ import annotations

import logging
import re
from typing import List

from preview_composer.models.timeline import Timeline
from preview_composer.utils.config import (
    PAUSE_LONG_TAG,
    PAUSE_SHORT_TAG,
    PAUSE_TAG,
    PUNCT_PAUSE_SKIP_CHARS,
    SCENE_TRANSITION_PAUSE_ENABLED,
    TTS_KEY_SEPARATOR,
    MarkupProfile,
)

logger = logging.getLogger(__name__)

USER_PAUSE_TAG_RE = re.compile(r"\[pause(?:\s+short|\s+long)?\]", re.IGNORECASE)
PART_DELIMITER_RE = re.compile(r"\s*\|\|\|\s*")
# 문장부호 뒤에 공백 유무와 관계없이 텍스트가 이어지는 경우
PUNCT_FOLLOWED_RE = re.compile(r"([!.?])(\s*)(?=\S)")
WHITESPACE_RE = re.compile(r"\s+")


def split_script_parts(script: str) -> List[str]:
    """Split a scene script on ``|||`` into trimmed, non-empty parts."""
    if not script or not script.strip():
        return []
    parts = PART_DELIMITER_RE.split(script.strip())
    return [p.strip() for p in parts if p.strip()]


def strip_user_pause_tags(text: str) -> str:
    """Remove pause tags the user typed and collapse whitespace."""
    return WHITESPACE_RE.sub(" ", USER_PAUSE_TAG_RE.sub("", text)).strip()


def _insert_punct_pauses_v2(cleaned: str) -> str:
    # 직전 문장이 PUNCT_PAUSE_SKIP_CHARS 이하이면 pause 생략
    result = []
    last = 0
    for match in PUNCT_FOLLOWED_RE.finditer(cleaned):
        punct_pos = match.start()
        sentence = cleaned[last:punct_pos].strip()
        result.append(cleaned[last:punct_pos + 1])
        if len(sentence) > PUNCT_PAUSE_SKIP_CHARS:
            result.append(f" {PAUSE_TAG} ")
        else:
            result.append(match.group(2))
        last = match.end()
    result.append(cleaned[last:])
    return "".join(result)


def make_markup_from_plain_text(
    text: str,
    add_scene_transition_pause: bool = False,
    profile: str = MarkupProfile.V1,
) -> str:
    """Convert plain script text into narration markup.

    Args:
        text: One script part as the user typed it.
        add_scene_transition_pause: Append the scene-transition pause tag.
        profile: ``v1`` always pauses after punctuation followed by text and
            uses a long transition pause; ``v2`` skips the pause after very
            short sentences and uses a short transition pause.

    Returns:
        Markup string, or ``""`` if nothing speakable remains.

    Example:
        >>> make_markup_from_plain_text("좋아! 지금", add_scene_transition_pause=True)
        '좋아! [pause] 지금 [pause long]'
    """
    cleaned = strip_user_pause_tags(text or "")
    if not cleaned:
        return ""

    if profile == MarkupProfile.V2:
        marked = _insert_punct_pauses_v2(cleaned)
    elif profile == MarkupProfile.V1:
        marked = PUNCT_FOLLOWED_RE.sub(lambda m: f"{m.group(1)} {PAUSE_TAG} ", cleaned)
    else:
        raise ValueError(f"Unknown markup profile: {profile}")

    marked = marked.strip()
    if not add_scene_transition_pause:
        return marked

    transition_tag = PAUSE_SHORT_TAG if profile == MarkupProfile.V2 else PAUSE_LONG_TAG
    return f"{marked} {transition_tag}"


def build_scene_markup(
    timeline: Timeline | None,
    scene_index: int,
    transition_pause_enabled: bool = SCENE_TRANSITION_PAUSE_ENABLED,
    profile: str = MarkupProfile.V1,
) -> List[str]:
    """Build the markup list for every spoken part of one scene.

    The transition pause (when enabled) goes on every part except the last
    part of the last scene.
    """
    if timeline is None or not (0 <= scene_index < len(timeline.scenes)):
        return []
    scene = timeline.scenes[scene_index]
    parts = split_script_parts(scene.script or scene.overlay.text)
    if not parts:
        return []

    is_last_scene = timeline.is_last_scene(scene_index)
    markups = []
    for part_index, part in enumerate(parts):
        is_last_part = is_last_scene and part_index == len(parts) - 1
        markup = make_markup_from_plain_text(
            part,
            add_scene_transition_pause=transition_pause_enabled and not is_last_part,
            profile=profile,
        )
        if markup:
            markups.append(markup)
    logger.debug(f"Scene {scene_index} ({scene.scene_id}): {len(markups)} markup part(s)")
    return markups


def make_tts_key(voice_id: str, markup: str) -> str:
    """Cache key for a narration request (``voice::markup``)."""
    return f"{voice_id}{TTS_KEY_SEPARATOR}{markup}"


def markup_to_plain_text(markup: str) -> str:
    """Render markup for engines that do not understand pause tags.

    Short/plain pauses become a comma pause, long pauses a sentence break.
    """
    text = re.sub(r"\s*\[pause\s+long\]\s*", ". ", markup, flags=re.IGNORECASE)
    text = re.sub(r"\s*\[pause(?:\s+short)?\]\s*", ", ", text, flags=re.IGNORECASE)
    # "좋아!, 지금" 처럼 문장부호 뒤에 붙은 쉼표/마침표는 제거
    text = re.sub(r"([!.?])[,.]", r"\1", text)
    return WHITESPACE_RE.sub(" ", text).strip(" ,")
