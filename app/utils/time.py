"""Time helpers."""
from __future__ import annotations

import time


def epoch_millis() -> int:
    """Return the current wall-clock time in milliseconds since the epoch."""

    return int(time.time() * 1000)


def seconds_to_millis(seconds: float) -> int:
    """Convert a duration in seconds to whole milliseconds."""

    return int(seconds * 1000)
