"""Background music template library."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from preview_composer.utils.config import BGM_TEMPLATES


@dataclass(frozen=True, slots=True)
class BgmTemplate:
    template_id: str
    name: str
    url: str


class BgmLibrary:
    """Resolves a confirmed template id to a playable location."""

    def __init__(self, templates: dict[str, dict] | None = None):
        source = BGM_TEMPLATES if templates is None else templates
        self._templates = {
            tid: BgmTemplate(tid, data.get("name", tid), data.get("url", ""))
            for tid, data in source.items()
        }

    def get(self, template_id: str | None) -> BgmTemplate | None:
        if not template_id:
            return None
        return self._templates.get(template_id)

    def list_templates(self) -> list[BgmTemplate]:
        return list(self._templates.values())

    def url_for(self, template_id: str | None) -> str | None:
        """Playable URL/path of the template, or None if unusable."""
        template = self.get(template_id)
        if template is None or not template.url:
            return None
        url = template.url
        if url.startswith(("http://", "https://", "/")):
            return url
        # 상대 경로는 실제 파일이 있을 때만 허용
        if Path(url).is_file():
            return str(Path(url).resolve())
        return None
