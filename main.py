"""PreviewComposer headless preview runner.

Usage:
    python main.py <timeline.preview.json> [bgm_template_id]

Synthesizes narration for every scene, then plays the timeline once with
the recording renderer and logs the active scene as playback advances.
"""

import logging
import os
import sys
from pathlib import Path

# 화면 없이 실행 (폰트 DB / 멀티미디어는 QGuiApplication 필요)
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtGui import QGuiApplication

from preview_composer.controllers.preview_context import create_preview_context
from preview_composer.services.elevenlabs_tts_service import ElevenLabsTTSService
from preview_composer.services.narration_uploader import HttpNarrationUploader
from preview_composer.services.settings_manager import SettingsManager
from preview_composer.services.timeline_io import load_timeline
from preview_composer.services.tts_service import EdgeTTSSynthesizer
from preview_composer.utils.config import APP_NAME, ORG_NAME, TTSEngine
from preview_composer.utils.time_utils import seconds_to_display

logger = logging.getLogger("preview_composer")


def _create_synthesizer(settings: SettingsManager):
    if settings.get_tts_engine() == TTSEngine.ELEVENLABS:
        api_key = settings.get_elevenlabs_api_key()
        if api_key:
            return ElevenLabsTTSService(api_key)
        logger.warning("ElevenLabs selected but no API key set, using edge-tts")
    return EdgeTTSSynthesizer()


def _create_uploader(settings: SettingsManager):
    endpoint = settings.get_upload_endpoint()
    return HttpNarrationUploader(endpoint) if endpoint else None


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    QGuiApplication.setOrganizationName(ORG_NAME)
    QGuiApplication.setApplicationName(APP_NAME)
    app = QGuiApplication(sys.argv)

    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    timeline_path = Path(sys.argv[1])
    if not timeline_path.is_file():
        print(f"Timeline file not found: {timeline_path}")
        sys.exit(2)
    bgm_template = sys.argv[2] if len(sys.argv) > 2 else None

    settings = SettingsManager()
    timeline = load_timeline(timeline_path)
    ctx = create_preview_context(
        _create_synthesizer(settings),
        timeline,
        settings=settings,
        uploader=_create_uploader(settings),
    )
    for scene in timeline.scenes:
        ctx.font_loader.request(scene.overlay.font_key)

    def _on_scene(index: int) -> None:
        logger.info(
            f"[{seconds_to_display(ctx.transport.get_time())}] "
            f"scene {index + 1}/{ctx.timeline.scene_count}"
        )

    def _on_playing_changed(playing: bool) -> None:
        if not playing and ctx.transport.get_time() >= ctx.transport.total_duration:
            logger.info("Preview finished")
            app.quit()

    def _on_narration_done(ok: bool) -> None:
        if not ok:
            logger.warning("Playing without narration")
        if bgm_template:
            ctx.bgm.confirm_template(bgm_template, ctx.transport.is_playing)
        ctx.playback_ctrl.seek(0.0)
        ctx.transport.play()
        if not ctx.transport.is_playing:
            logger.info("Nothing to play")
            app.quit()

    ctx.on_scene_index_changed = _on_scene
    ctx.transport.playing_changed.connect(_on_playing_changed)
    ctx.narration_ctrl.on_done = _on_narration_done
    ctx.narration_ctrl.generate_all()

    exit_code = app.exec()
    ctx.tts_track.dispose()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
