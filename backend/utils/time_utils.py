from __future__ import annotations

import math
from datetime import datetime, timezone


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def format_clock(timestamp: float | int | str | None) -> str:
    """Render a transcript timestamp as HH:MM:SS.

    Numbers (or numeric strings) are seconds from the start of the recording;
    ISO datetime strings keep their time of day. Anything else is returned as is.
    """
    if timestamp is None:
        return "00:00:00"
    seconds = timestamp
    if isinstance(timestamp, str):
        try:
            seconds = float(timestamp)
        except ValueError:
            try:
                return datetime.fromisoformat(timestamp).strftime("%H:%M:%S")
            except ValueError:
                return timestamp
    if not math.isfinite(seconds):
        return timestamp if isinstance(timestamp, str) else "00:00:00"
    total = int(seconds) % 86400
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
