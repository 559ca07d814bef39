from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import from_iso, to_iso


@dataclass(frozen=True)
class DrillSession:
    """Domain entity: one fire-drill exercise.

    Starts active; once ``active`` is False the session is terminal.
    """

    session_id: int
    started_by: str
    started_at: datetime
    active: bool = True
    ended_at: Optional[datetime] = None
    ended_by: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "started_by": self.started_by,
            "started_at": to_iso(self.started_at),
            "active": self.active,
            "ended_at": to_iso(self.ended_at),
            "ended_by": self.ended_by,
        }

    @classmethod
    def from_dict(cls, row: dict) -> "DrillSession":
        return cls(
            session_id=int(row["session_id"]),
            started_by=row["started_by"],
            started_at=from_iso(row["started_at"]),
            active=bool(row.get("active", True)),
            ended_at=from_iso(row.get("ended_at")),
            ended_by=row.get("ended_by"),
        )
