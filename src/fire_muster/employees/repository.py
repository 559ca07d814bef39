from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee


class EmployeeRepository(Protocol):
    def create(self, *, name: str, dept: Optional[str], marshal_id: Optional[int]) -> Employee:
        raise NotImplementedError

    def list_all(self) -> Sequence[Employee]:
        """All employees ordered by name."""

        raise NotImplementedError

    def list_by_marshal(self, marshal_id: int) -> Sequence[Employee]:
        raise NotImplementedError

    def delete_by_id(self, employee_id: int) -> bool:
        raise NotImplementedError
