"""Overlay font loading keyed by ``family:weight``."""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QObject, QTimer, Signal
from PySide6.QtGui import QFontDatabase

from preview_composer.utils.config import DEFAULT_FONT_FAMILY
from preview_composer.utils.generation import GenerationCounter, GenerationToken

logger = logging.getLogger(__name__)


def split_font_key(font_key: str) -> tuple[str, int | None]:
    family, _, weight = font_key.rpartition(":")
    if not family:
        return font_key, None
    try:
        return family, int(weight)
    except ValueError:
        return font_key, None


class FontLoader(QObject):
    """
    오버레이 폰트 로더.

    같은 키는 한 번만 로드하고, 로드가 끝났을 때 그 사이 다른 폰트가 요청됐으면
    (superseded) 결과를 적용하지 않습니다. 실패 시 기본 폰트로 대체하며
    렌더링을 막지 않습니다.
    """

    font_applied = Signal(str, str)  # font_key, family actually usable

    def __init__(
        self,
        font_files: dict[str, str | Path] | None = None,
        default_family: str = DEFAULT_FONT_FAMILY,
        parent=None,
    ):
        super().__init__(parent)
        self._font_files = {k: Path(v) for k, v in (font_files or {}).items()}
        self._default_family = default_family
        self._families: dict[str, str] = {}
        self._pending: set[str] = set()
        self._generations = GenerationCounter()

    def family_for(self, font_key: str) -> str:
        """Usable family for *font_key* (default font until it has loaded)."""
        return self._families.get(font_key, self._default_family)

    def is_loaded(self, font_key: str) -> bool:
        return font_key in self._families

    def request(self, font_key: str) -> GenerationToken:
        """Ask for *font_key* to become the active overlay font.

        The load runs on the next event-loop turn; ``font_applied`` fires
        only if no newer request superseded this one.
        """
        token = self._generations.bump("active")
        if font_key in self._families:
            self.font_applied.emit(font_key, self._families[font_key])
            return token
        if font_key not in self._pending:
            self._pending.add(font_key)
            QTimer.singleShot(0, lambda: self._finish(font_key, token))
        else:
            QTimer.singleShot(0, lambda: self._apply_if_current(font_key, token))
        return token

    def _finish(self, font_key: str, token: GenerationToken):
        self._pending.discard(font_key)
        self._families[font_key] = self.load_now(font_key)
        self._apply_if_current(font_key, token)

    def _apply_if_current(self, font_key: str, token: GenerationToken):
        if font_key not in self._families:
            return
        if not self._generations.is_current(token):
            logger.debug(f"Font load superseded: {font_key}")
            return
        self.font_applied.emit(font_key, self._families[font_key])

    def load_now(self, font_key: str) -> str:
        """Load synchronously; returns the family name or the default on failure."""
        if font_key in self._families:
            return self._families[font_key]

        family, _weight = split_font_key(font_key)
        path = self._font_files.get(font_key)
        if path is None:
            if family in QFontDatabase.families():
                return family
            logger.info(f"Font not available, using {self._default_family}: {font_key}")
            return self._default_family

        font_id = QFontDatabase.addApplicationFont(str(path))
        if font_id == -1:
            logger.warning(f"Font load failed, using {self._default_family}: {path}")
            return self._default_family
        loaded = QFontDatabase.applicationFontFamilies(font_id)
        return loaded[0] if loaded else self._default_family
