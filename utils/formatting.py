from typing import Tuple


def format_ms(ms) -> str:
    """Format a millisecond count as m:ss (h:mm:ss past an hour)."""
    try:
        total_seconds = max(0, int(ms or 0)) // 1000
    except (TypeError, ValueError):
        total_seconds = 0

    hours, rem = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def describe_snapshot(snapshot) -> Tuple[str, str]:
    """Return (title, subtitle) lines for a TrackSnapshot."""

    if snapshot.error:
        headline, detail = snapshot.error
        return headline, detail

    icon = "▶" if snapshot.is_playing else "⏸"
    title = f"{icon} {snapshot.track or 'Unknown track'}"
    parts = [p for p in (snapshot.artist, snapshot.album) if p]
    return title, " · ".join(parts)
