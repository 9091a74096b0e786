"""
PURPOSE: Time utilities for request freshness checks.
Everything is UTC; Slack request timestamps are integer Unix seconds.
"""

from datetime import datetime, timezone


def get_utc_now() -> datetime:
    """
    PURPOSE: Return the current UTC time as a timezone-aware datetime object.

    Returns:
        datetime: Current UTC time with timezone info.
    """
    return datetime.now(timezone.utc)


def get_unix_time() -> int:
    """
    PURPOSE: Return the current UTC time as whole Unix seconds.

    Returns:
        int: Seconds since the epoch, truncated.
    """
    return int(get_utc_now().timestamp())


def seconds_apart(timestamp: int, now: int) -> int:
    """Absolute distance between two Unix timestamps, in seconds."""
    return abs(now - timestamp)
