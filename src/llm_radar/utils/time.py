"""Time helpers for LLM Radar."""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


def format_duration(seconds: float) -> str:
    """Render a duration the way the results list shows it.

    Sub-second values keep millisecond precision ("850ms"), longer ones are
    rounded to the millisecond and shown in seconds ("12.345s"), and anything
    past a minute is split into minutes ("2m3.5s").

    Args:
        seconds: Duration in seconds (negative values are clamped to 0).

    Returns:
        Human-readable duration string.
    """
    millis = max(0, round(seconds * 1000))
    if millis < 1000:
        return f"{millis}ms"
    delta = timedelta(milliseconds=millis)
    minutes, rest = divmod(delta.total_seconds(), 60)
    if minutes:
        return f"{int(minutes)}m{rest:g}s"
    return f"{rest:g}s"
