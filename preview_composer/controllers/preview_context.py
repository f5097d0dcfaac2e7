"""PreviewContext — Controller 간 공유 상태 및 엔진 컴포넌트 참조.

런처(main.py 또는 UI 셸)가 create_preview_context()로 만들어 모든 Controller에
주입한다. Controller는 self.ctx 로 접근.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from preview_composer.models.timeline import Timeline

if TYPE_CHECKING:
    from preview_composer.infrastructure.renderer import SceneRenderer
    from preview_composer.services.bgm_controller import BgmController
    from preview_composer.services.font_loader import FontLoader
    from preview_composer.services.narration_service import NarrationService
    from preview_composer.services.scene_locator import SceneLocator
    from preview_composer.controllers.playback_state_bridge import PlaybackStateBridge
    from preview_composer.services.settings_manager import SettingsManager
    from preview_composer.services.transport import Transport
    from preview_composer.services.tts_track import TtsTrack


class PreviewContext:
    """Controller들이 공유하는 상태 및 컴포넌트 컨테이너."""

    def __init__(self) -> None:
        # ---- Core state ----
        self.timeline: Timeline = Timeline()

        # ---- Engine components ----
        self.transport: Transport = None  # type: ignore[assignment]
        self.tts_track: TtsTrack = None  # type: ignore[assignment]
        self.bgm: BgmController = None  # type: ignore[assignment]
        self.narration: NarrationService = None  # type: ignore[assignment]
        self.locator: SceneLocator = None  # type: ignore[assignment]
        self.renderer: SceneRenderer = None  # type: ignore[assignment]
        self.font_loader: FontLoader | None = None
        self.settings: SettingsManager | None = None
        self.play_state: PlaybackStateBridge = None  # type: ignore[assignment]

        # ---- Controller 참조 ----
        self.playback_ctrl: Any = None
        self.edit_ctrl: Any = None
        self.narration_ctrl: Any = None

        # ---- 콜백 (UI 셸이 설정) ----
        self.on_scene_index_changed: Callable[[int], None] = lambda index: None

    def current_scene_index(self) -> int:
        if self.locator is None:
            return 0
        return self.locator.current_index()


def create_preview_context(
    synthesizer,
    timeline: Timeline | None = None,
    renderer=None,
    tts_player=None,
    bgm_player=None,
    settings=None,
    uploader=None,
    bgm_library=None,
) -> PreviewContext:
    """Build a fully wired context (components + controllers)."""
    from preview_composer.controllers.edit_controller import EditController
    from preview_composer.controllers.narration_controller import NarrationController
    from preview_composer.controllers.playback_controller import PlaybackController
    from preview_composer.controllers.playback_state_bridge import PlaybackStateBridge
    from preview_composer.infrastructure.renderer import RecordingRenderer
    from preview_composer.services.bgm_controller import BgmController
    from preview_composer.services.font_loader import FontLoader
    from preview_composer.services.narration_service import NarrationService
    from preview_composer.services.scene_locator import SceneLocator
    from preview_composer.services.transport import Transport
    from preview_composer.services.tts_track import TtsTrack

    ctx = PreviewContext()
    ctx.settings = settings
    if timeline is not None:
        ctx.timeline = timeline

    ctx.transport = Transport(ctx.timeline.total_duration)
    if ctx.timeline.playback_speed > 0:
        ctx.transport.set_rate(ctx.timeline.playback_speed)
    ctx.tts_track = TtsTrack(player=tts_player)
    ctx.bgm = BgmController(
        library=bgm_library,
        player=bgm_player,
        time_provider=ctx.transport.get_time,
    )
    ctx.narration = NarrationService(synthesizer, uploader=uploader)
    if settings is not None:
        ctx.narration.transition_pause_enabled = settings.get_scene_transition_pause_enabled()
        ctx.narration.markup_profile = settings.get_markup_profile()
        ctx.bgm.volume = settings.get_bgm_volume()
    ctx.locator = SceneLocator(lambda: ctx.timeline, ctx.tts_track, ctx.transport)
    ctx.renderer = renderer if renderer is not None else RecordingRenderer()
    ctx.font_loader = FontLoader()
    ctx.play_state = PlaybackStateBridge(ctx.transport)

    ctx.playback_ctrl = PlaybackController(ctx)
    ctx.edit_ctrl = EditController(ctx)
    ctx.narration_ctrl = NarrationController(ctx)
    ctx.playback_ctrl.connect_signals()
    return ctx
