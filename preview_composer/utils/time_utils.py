"""Time conversion utilities (timeline time is float seconds)."""

from functools import lru_cache


def seconds_to_display(seconds: float) -> str:
    """Convert seconds to display string 'MM:SS.mmm'."""
    if seconds < 0:
        seconds = 0.0
    minutes = int(seconds // 60)
    rest = seconds - minutes * 60
    return f"{minutes:02d}:{rest:06.3f}"


def display_to_seconds(text: str) -> float:
    """Parse display time 'MM:SS.mmm' → seconds."""
    text = text.strip()
    parts = text.split(":")
    if len(parts) != 2:
        raise ValueError(f"Expected MM:SS.mmm format, got '{text}'")
    return int(parts[0]) * 60 + float(parts[1])


def seconds_to_ms(seconds: float) -> int:
    """Convert seconds (float) to integer milliseconds."""
    return int(round(seconds * 1000))


def ms_to_seconds(ms: int) -> float:
    return ms / 1000.0


@lru_cache(maxsize=2048)
def seconds_to_frame(seconds: float, fps: int) -> int:
    """Convert seconds to a 0-indexed frame number.

    Example:
        >>> seconds_to_frame(1.0, 30)
        30
    """
    return int(round(seconds * fps))


@lru_cache(maxsize=2048)
def frame_to_seconds(frame: int, fps: int) -> float:
    """Convert a frame number to seconds.

    Example:
        >>> frame_to_seconds(45, 30)
        1.5
    """
    return frame / fps


def snap_to_frame(seconds: float, fps: int) -> float:
    """Snap time to the nearest frame boundary."""
    return frame_to_seconds(seconds_to_frame(seconds, fps), fps)


def seconds_to_timecode_frames(seconds: float, fps: int) -> str:
    """Convert seconds to HH:MM:SS:FF timecode format.

    Example:
        >>> seconds_to_timecode_frames(83.5, 30)
        '00:01:23:15'
    """
    if seconds < 0:
        seconds = 0.0

    total_frames = seconds_to_frame(seconds, fps)
    frames = total_frames % fps
    total_seconds = total_frames // fps
    secs = total_seconds % 60
    total_minutes = total_seconds // 60
    minutes = total_minutes % 60
    hours = total_minutes // 60

    return f"{hours:02d}:{minutes:02d}:{secs:02d}:{frames:02d}"


def loop_position(timeline_seconds: float, track_duration: float) -> float:
    """Position inside a looping track for a given timeline time.

    Returns 0.0 when the track duration is unknown (<= 0).
    """
    if track_duration <= 0:
        return 0.0
    return max(0.0, timeline_seconds) % track_duration


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))
