"""Time helpers shared by models and services."""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Columns are stored without timezone information, so comparisons against
    stored values must use naive UTC as well.
    """

    return datetime.now(UTC).replace(tzinfo=None)


__all__ = ["utcnow"]
