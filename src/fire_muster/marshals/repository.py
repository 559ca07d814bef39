from __future__ import annotations

from typing import Protocol, Sequence

from .model import Marshal


class MarshalRepository(Protocol):
    def create(self, *, name: str) -> Marshal:
        raise NotImplementedError

    def list_all(self) -> Sequence[Marshal]:
        """All marshals ordered by name."""

        raise NotImplementedError

    def delete_by_id(self, marshal_id: int) -> bool:
        raise NotImplementedError
