"""
Utility functions for the Messages API.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def fold_title(title: str) -> str:
    """
    Canonical form used for title uniqueness.

    Stored in messages.title_key so the database index and every lookup
    compare the same Unicode case-folded value.
    """
    return title.casefold()


def titles_match(left: str | None, right: str | None) -> bool:
    """Case-insensitive title comparison."""
    if left is None or right is None:
        return left is right
    return fold_title(left) == fold_title(right)
