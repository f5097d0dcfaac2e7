"""Play state shared with secondary consumers (media controls, timeline UI)."""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal


class PlaybackStateBridge(QObject):
    """Read-only view of the transport play state plus a change request.

    The transport is the only holder of the play flag. Consumers observe
    ``playing_changed`` and ask for changes through ``set_playing``. The
    transport emits only on an actual change, so a consumer that writes
    back the value it just received is a no-op.
    """

    playing_changed = Signal(bool)

    def __init__(self, transport, parent=None):
        super().__init__(parent)
        self._transport = transport
        transport.playing_changed.connect(self.playing_changed)

    @property
    def is_playing(self) -> bool:
        return self._transport.is_playing

    def set_playing(self, playing: bool) -> None:
        if playing:
            self._transport.play()
        else:
            self._transport.pause()
