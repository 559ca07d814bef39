from __future__ import annotations

from datetime import datetime
from typing import Optional


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def from_iso(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def fmt_time(value: Optional[datetime]) -> str:
    if not value:
        return "—"
    return value.strftime("%H:%M:%S")


def fmt_date(value: Optional[datetime]) -> str:
    if not value:
        return "—"
    return value.strftime("%d %b %Y")


def elapsed(start: Optional[datetime], end: Optional[datetime] = None, *, now: Optional[datetime] = None) -> str:
    """Drill duration as ``"Xm Ys"``; open drills run until ``now``."""
    if not start:
        return "0m 0s"
    stop = end or now or now_local()
    secs = max(0, int((stop - start).total_seconds()))
    return f"{secs // 60}m {secs % 60}s"
