"""Injectable time source."""

from collections.abc import Callable
from datetime import datetime

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.utcnow()
