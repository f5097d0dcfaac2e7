"""Preview controllers — 엔진 컴포넌트 조율.

각 Controller는 PreviewContext를 통해 공유 상태에 접근한다.
"""

from preview_composer.controllers.preview_context import PreviewContext, create_preview_context

__all__ = ["PreviewContext", "create_preview_context"]
