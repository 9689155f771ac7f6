"""
Text processing utilities.

WHAT: Helpers for message text normalisation and previews
WHY: Centralize the notification truncation rule and blank-text checks
HOW: Plain string operations, limits read from settings
"""

from ..core.config import settings

ELLIPSIS = "..."


def truncate_preview(text: str, limit: int | None = None) -> str:
    """
    Shorten text for a notification preview.

    Args:
        text: Original message text
        limit: Characters to keep (defaults to NOTIFICATION_PREVIEW_LENGTH)

    Returns:
        The first `limit` characters plus "..." when the text is longer,
        otherwise the text unchanged
    """
    if limit is None:
        limit = settings.NOTIFICATION_PREVIEW_LENGTH
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def is_blank(text: str | None) -> bool:
    """True when text is None or only whitespace."""
    return text is None or not text.strip()
