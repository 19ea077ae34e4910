"""Human-facing timing helpers for processing status displays.

``format_processing_time`` renders an elapsed duration compactly for
progress lists; ``estimate_processing_time`` gives a rough up-front
estimate from file size and processor type, before any stage has run.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

# Rough extraction cost in seconds per megabyte, keyed by processor type.
_BASE_SECONDS_PER_MB: dict[str, float] = {
    "pdf": 0.5,
    "docx": 0.3,
    "xlsx": 0.4,
    "image": 2.0,
    "text": 0.1,
}
_DEFAULT_SECONDS_PER_MB = 0.5
_MIN_ESTIMATE_SECONDS = 5


def format_processing_time(started_at: datetime, ended_at: datetime | None = None) -> str:
    """Format the time between *started_at* and *ended_at* (default: now).

    Examples: ``"42s"``, ``"3m 5s"``, ``"1h 2m"``.
    """
    end = ended_at or datetime.now(tz=timezone.utc)  # noqa: UP017
    seconds = max(0, int((end - started_at).total_seconds()))

    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def estimate_processing_time(file_size: int, file_type: str) -> int:
    """Return a rough processing estimate in whole seconds (never below 5)."""
    size_mb = file_size / (1024 * 1024)
    per_mb = _BASE_SECONDS_PER_MB.get(file_type, _DEFAULT_SECONDS_PER_MB)
    return max(_MIN_ESTIMATE_SECONDS, math.floor(size_mb * per_mb))
