"""Time source for the lending core.

All timestamps are naive UTC datetimes, which is what SQLite round-trips.
Services accept any zero-argument callable returning such a datetime so tests
can move time forward.
"""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(UTC).replace(tzinfo=None)
