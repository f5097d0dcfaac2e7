"""Utility for logging narration synthesis requests to a file."""

import logging
from pathlib import Path

from preview_composer.utils.config import USER_DATA_DIR

# Setup a specific logger for narration requests
_logger = logging.getLogger("narration_requests")
_logger.setLevel(logging.DEBUG)
_logger.propagate = False

_log_dir: Path | None = None


def get_narration_log_path() -> Path:
    """Return the path to the narration log file."""
    log_dir = _log_dir or (USER_DATA_DIR / "logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / "narration.log"


def set_log_dir(log_dir: Path | None) -> None:
    """Redirect the log file (drops the current handler)."""
    global _log_dir
    _log_dir = Path(log_dir) if log_dir is not None else None
    for handler in list(_logger.handlers):
        _logger.removeHandler(handler)
        handler.close()


def _ensure_handler() -> None:
    # 첫 기록 시점에 파일 핸들러 생성
    if _logger.handlers:
        return
    fh = logging.FileHandler(get_narration_log_path(), encoding="utf-8")
    fh.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    _logger.addHandler(fh)


def log_request(cache_key: str, scene_id: str) -> None:
    """Log a synthesis request being issued."""
    _ensure_handler()
    _logger.info(f"Request scene={scene_id} key={cache_key[:120]}")


def log_result(cache_key: str, duration_seconds: float, size_bytes: int) -> None:
    _ensure_handler()
    _logger.info(f"Done key={cache_key[:120]} duration={duration_seconds:.3f}s size={size_bytes}B")


def log_failure(cache_key: str, error: BaseException) -> None:
    _ensure_handler()
    _logger.warning(f"Failed key={cache_key[:120]}: {error}")


def log_dropped(cache_key: str) -> None:
    """Log a result discarded because its request was superseded."""
    _ensure_handler()
    _logger.debug(f"Dropped stale result key={cache_key[:120]}")
