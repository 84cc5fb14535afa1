"""Display helpers for video metadata."""

import re

ISO_DURATION_PATTERN = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def format_duration(iso_duration: str) -> str:
    """Format an ISO 8601 duration (e.g. 'PT12M5S') as '12:05' or 'H:MM:SS'."""
    if not iso_duration:
        return ""

    match = ISO_DURATION_PATTERN.match(iso_duration)
    if not match:
        return ""

    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_view_count(count: int) -> str:
    """Format a view count as '1.2M views', '3.4K views' or '12 views'."""
    count = count or 0
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M views"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K views"
    return f"{count} views"
