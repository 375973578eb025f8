"""Elapsed-time to HH:MM:SS:FF timecode formatting.

WHY: Both the timestamped plain text and the ingest normalization need a
single definition of a valid frame rate and a single rendering of an
elapsed time as a broadcast-style timecode.

HOW: resolve_fps() applies the default frame rate to unset or out-of-range
values. format_timecode() works on whole milliseconds with integer
arithmetic so that results never depend on float rounding.

RULES:
- Valid frame rates are MIN_FPS..MAX_FPS (1..1000); anything else,
  including 0 and None, becomes DEFAULT_FPS (25)
- FF = floor(elapsed_ms * fps / 1000) mod fps, so FF is always < fps
- HH is zero-padded to two digits and simply grows past 99 hours
- Negative elapsed times are clamped to zero
- Never raises for numeric input
"""

from __future__ import annotations

import logging
from typing import Optional

from stt_pipeline.config import DEFAULT_FPS, MAX_FPS, MIN_FPS

logger = logging.getLogger(__name__)


def resolve_fps(fps: Optional[int], warn: bool = True) -> int:
    """Return fps if it is a valid frame rate, else DEFAULT_FPS.

    RULES:
    - warn=True logs a warning when the default is substituted
    - None counts as "unset" and never triggers the warning
    """
    if fps is not None and MIN_FPS <= fps <= MAX_FPS:
        return int(fps)
    if warn and fps is not None:
        logger.warning(
            "Invalid frame rate %s, falling back to %d fps", fps, DEFAULT_FPS
        )
    return DEFAULT_FPS


def format_timecode(elapsed_s: float, fps: Optional[int]) -> str:
    """Render an elapsed time as ``HH:MM:SS:FF``.

    Args:
        elapsed_s: Elapsed time in seconds.
        fps: Frame rate used for the FF field.

    Returns:
        The timecode string, e.g. ``"01:31:00:00"``.
    """
    fps = resolve_fps(fps)
    total_ms = max(0, int(round(elapsed_s * 1000)))

    hours, rem_ms = divmod(total_ms, 3600 * 1000)
    minutes, rem_ms = divmod(rem_ms, 60 * 1000)
    seconds = rem_ms // 1000
    frames = (total_ms * fps // 1000) % fps

    return "{:02d}:{:02d}:{:02d}:{:02d}".format(hours, minutes, seconds, frames)
