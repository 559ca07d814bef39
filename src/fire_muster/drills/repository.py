from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol, Sequence

from .model import DrillSession

# Columns a partial update may touch.
UPDATABLE_COLUMNS = frozenset({"active", "ended_at", "ended_by"})


class DrillSessionRepository(Protocol):
    def create(self, *, started_by: str, started_at: datetime) -> DrillSession:
        raise NotImplementedError

    def get_by_id(self, session_id: int) -> Optional[DrillSession]:
        raise NotImplementedError

    def list_recent(self, limit: int) -> Sequence[DrillSession]:
        """Newest first by ``started_at``."""

        raise NotImplementedError

    def list_active(self) -> Sequence[DrillSession]:
        raise NotImplementedError

    def update(
        self,
        session_id: int,
        changes: Mapping[str, object],
        *,
        only_active: bool = False,
    ) -> Optional[DrillSession]:
        """Partial update by id.

        With ``only_active`` the row is changed only while ``active`` is true.
        Returns the updated session, or None when no row was changed.
        """

        raise NotImplementedError

    def delete_by_id(self, session_id: int) -> bool:
        """Delete the session together with all of its attendance rows."""

        raise NotImplementedError
