"""Shared utilities."""

from datetime import datetime, timezone


def truncate_output(text: str, max_length: int = 30000) -> str:
    """Truncate output to max_length characters.

    Args:
        text: The text to truncate
        max_length: Maximum length (default 30000)

    Returns:
        Truncated text with indicator appended
    """
    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    indicator = f"\n\n[Output truncated - showing first {max_length} characters]"
    return truncated + indicator


def preview(text: str, limit: int = 200) -> str:
    """Single-line preview with an ellipsis when cut."""
    flat = " ".join((text or "").split())
    return flat if len(flat) <= limit else flat[:limit] + "..."


def timestamped_name(prefix: str, suffix: str = ".png", now: datetime | None = None) -> str:
    """File name such as ``artwork_2024-05-01T10-20-30-123Z.png``.

    Names sort chronologically, so the newest capture is the last one.
    """
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    stamp = moment.strftime("%Y-%m-%dT%H-%M-%S-") + f"{moment.microsecond // 1000:03d}Z"
    return f"{prefix}_{stamp}{suffix}"
