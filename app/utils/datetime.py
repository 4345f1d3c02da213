from __future__ import annotations
from datetime import datetime, timedelta, UTC
from typing import Optional

__all__ = ["utc_now", "utc_now_naive", "to_naive_utc", "retention_cutoff"]

def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(UTC)

def utc_now_naive() -> datetime:
    """Return naive UTC now, the form token timestamps are stored in."""
    return to_naive_utc(utc_now())

def to_naive_utc(dt: datetime | None) -> Optional[datetime]:
    """Convert aware datetime to naive UTC for storage/compare; pass through naive assumed UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)

def retention_cutoff(days: int, now: datetime | None = None) -> datetime:
    """Naive UTC instant ``days`` before ``now``; older records are expired."""
    reference = to_naive_utc(now) if now is not None else utc_now_naive()
    return reference - timedelta(days=days)
