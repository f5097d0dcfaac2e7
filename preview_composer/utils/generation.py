"""Generation tokens for cooperative cancellation of async work.

비동기 요청은 시작 시점의 토큰을 들고 있다가, 완료 시 현재 세대와 비교해서
달라졌으면(=superseded) 결과를 버린다. 강제 abort는 하지 않는다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable


@dataclass(frozen=True, slots=True)
class GenerationToken:
    key: Hashable
    epoch: int
    generation: int


class GenerationCounter:
    """Per-key monotonically increasing generation numbers.

    ``reset()`` starts a new epoch, which supersedes every outstanding token
    regardless of key.
    """

    def __init__(self) -> None:
        self._epoch = 0
        self._generations: dict[Hashable, int] = {}

    def current(self, key: Hashable = None) -> GenerationToken:
        return GenerationToken(key, self._epoch, self._generations.get(key, 0))

    def bump(self, key: Hashable = None) -> GenerationToken:
        """Supersede every token previously handed out for *key*."""
        gen = self._generations.get(key, 0) + 1
        self._generations[key] = gen
        return GenerationToken(key, self._epoch, gen)

    def is_current(self, token: GenerationToken) -> bool:
        return (
            token.epoch == self._epoch
            and self._generations.get(token.key, 0) == token.generation
        )

    def reset(self) -> None:
        self._epoch += 1
        self._generations.clear()
