"""In-memory narration cache with an in-flight request registry.

Completed segments and pending requests are both keyed by ``voice::markup``.
Every entry remembers the scene that requested it so it can be invalidated
by ``scene_id`` (indices shift under reordering and are never used for this).

The background narration worker fills the cache while the main thread edits
the timeline, so every access goes through ``lock``.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Iterable

from preview_composer.models.narration import NarrationSegment

logger = logging.getLogger(__name__)


class NarrationCache:
    """Session-scoped narration cache. Nothing is persisted."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._completed: dict[str, NarrationSegment] = {}
        self._in_flight: dict[str, asyncio.Future] = {}
        # cache_key -> scene_ids that requested it
        self._owners: dict[str, set[str]] = {}

    # -------------------------------------------------------- Completed

    def get(self, cache_key: str) -> NarrationSegment | None:
        with self.lock:
            return self._completed.get(cache_key)

    def put(self, segment: NarrationSegment) -> None:
        with self.lock:
            self._completed[segment.cache_key] = segment
            self._owners.setdefault(segment.cache_key, set()).add(segment.scene_id)

    def __contains__(self, cache_key: str) -> bool:
        with self.lock:
            return cache_key in self._completed

    def __len__(self) -> int:
        with self.lock:
            return len(self._completed)

    # -------------------------------------------------------- In-flight

    def get_in_flight(self, cache_key: str) -> asyncio.Future | None:
        with self.lock:
            return self._in_flight.get(cache_key)

    def register_in_flight(self, cache_key: str, scene_id: str, future: asyncio.Future) -> None:
        with self.lock:
            self._in_flight[cache_key] = future
            self._owners.setdefault(cache_key, set()).add(scene_id)

    def release_in_flight(self, cache_key: str, future: asyncio.Future | None = None) -> None:
        """Remove the in-flight entry (only if it is still *future*, when given)."""
        with self.lock:
            current = self._in_flight.get(cache_key)
            if current is None:
                return
            if future is not None and current is not future:
                return
            del self._in_flight[cache_key]
            if cache_key not in self._completed:
                self._owners.pop(cache_key, None)

    @property
    def in_flight_count(self) -> int:
        with self.lock:
            return len(self._in_flight)

    # -------------------------------------------------------- Ownership / eviction

    def add_owner(self, cache_key: str, scene_id: str) -> None:
        with self.lock:
            if cache_key in self._completed or cache_key in self._in_flight:
                self._owners.setdefault(cache_key, set()).add(scene_id)

    def keys_for_scene(self, scene_id: str) -> list[str]:
        with self.lock:
            return [k for k, owners in self._owners.items() if scene_id in owners]

    def invalidate_scene(self, scene_id: str) -> int:
        """Drop every completed/in-flight entry requested by *scene_id*.

        Returns the number of keys dropped.
        """
        with self.lock:
            keys = self.keys_for_scene(scene_id)
            for key in keys:
                self._drop(key)
        if keys:
            logger.debug(f"Invalidated {len(keys)} narration entr(ies) for scene {scene_id}")
        return len(keys)

    def prune(self, live_scene_ids: Iterable[str]) -> int:
        """Drop entries whose owning scenes are all gone from the timeline."""
        live = set(live_scene_ids)
        with self.lock:
            stale = [k for k, owners in self._owners.items() if not (owners & live)]
            for key in stale:
                self._drop(key)
            # 살아있는 씬만 owner로 남김
            for owners in self._owners.values():
                owners &= live
        if stale:
            logger.debug(f"Pruned {len(stale)} narration entr(ies)")
        return len(stale)

    def _drop(self, key: str) -> None:
        self._completed.pop(key, None)
        self._in_flight.pop(key, None)
        self._owners.pop(key, None)

    def clear(self) -> None:
        with self.lock:
            self._completed.clear()
            self._in_flight.clear()
            self._owners.clear()
