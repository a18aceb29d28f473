from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def month_key(dt: datetime) -> str:
    """Calendar month bucket used by dashboard series ("YYYY-MM")."""
    return dt.strftime("%Y-%m")


def last_n_months(n: int, *, now: Optional[datetime] = None) -> list[str]:
    """
    Consecutive month keys ending with the current month, oldest first.

    last_n_months(3) in 2024-02 -> ["2023-12", "2024-01", "2024-02"]
    """
    now = now or utcnow()
    year, month = now.year, now.month
    keys = []
    for _ in range(n):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    keys.reverse()
    return keys
