from datetime import datetime


def format_duration(seconds: float) -> str:
    if seconds <= 0:
        return "0 ms"
    if seconds < 1:
        return f"{seconds * 1000:.1f} ms"
    if seconds < 60:
        return f"{seconds:.2f} s"
    if seconds < 3600:
        return f"{seconds / 60:.1f} min"
    return f"{seconds / 3600:.1f} h"


def format_age(last_update: datetime, now: datetime) -> str:
    """Human readable age of a timestamp, e.g. ``"4.0 min ago"``."""
    seconds = (now - last_update).total_seconds()
    if seconds < 1:
        return "just now"
    return f"{format_duration(seconds)} ago"
