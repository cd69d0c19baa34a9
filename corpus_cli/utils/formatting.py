"""
Helper functions for formatting data into human-readable strings.
"""


def format_duration(seconds: float) -> str:
    """
    Formats a duration in seconds into a human-readable string (e.g., '2h 34m 12s').
    """
    s = int(seconds)
    hours, remainder = divmod(s, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def format_rate(count: int, duration_s: float) -> str:
    """Formats a count over a duration as a per-minute rate (e.g., '42.0/min')."""
    if duration_s <= 0:
        return "0.0/min"
    return f"{count / duration_s * 60:.1f}/min"
