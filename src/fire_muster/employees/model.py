from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Domain entity: a person to account for during a drill.

    ``marshal_id`` is a weak reference: it may be None or point at a deleted marshal.
    """

    employee_id: int
    name: str
    dept: Optional[str] = None
    marshal_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "name": self.name,
            "dept": self.dept,
            "marshal_id": self.marshal_id,
        }

    @classmethod
    def from_dict(cls, row: dict) -> "Employee":
        marshal_id = row.get("marshal_id")
        return cls(
            employee_id=int(row["employee_id"]),
            name=row["name"],
            dept=row.get("dept") or None,
            marshal_id=int(marshal_id) if marshal_id is not None else None,
        )
