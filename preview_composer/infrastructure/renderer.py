"""캔버스 렌더링 추상화.

엔진은 render_at(t)만 호출하고 실제 그리기는 외부 구현체가 담당한다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class SceneRenderer(Protocol):
    """Draws the preview frame for timeline time *t* (idempotent)."""

    def render_at(
        self,
        t: float,
        skip_animation: bool = False,
        force_scene_index: int | None = None,
    ) -> None:
        ...


@dataclass(frozen=True, slots=True)
class RenderRequest:
    t: float
    skip_animation: bool
    force_scene_index: int | None


class RecordingRenderer:
    """헤드리스 실행/테스트용 SceneRenderer 구현체.

    같은 요청이 연속으로 들어오면 한 번만 기록한다.
    """

    def __init__(self, max_history: int = 1000) -> None:
        self._max_history = max_history
        self.requests: list[RenderRequest] = []

    @property
    def last(self) -> RenderRequest | None:
        return self.requests[-1] if self.requests else None

    def render_at(
        self,
        t: float,
        skip_animation: bool = False,
        force_scene_index: int | None = None,
    ) -> None:
        request = RenderRequest(t, skip_animation, force_scene_index)
        if self.last == request:
            return
        self.requests.append(request)
        if len(self.requests) > self._max_history:
            del self.requests[: len(self.requests) - self._max_history]

    def clear(self) -> None:
        self.requests.clear()
