from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Marshal:
    """Domain entity: a fire marshal responsible for a party of employees."""

    marshal_id: int
    name: str

    def to_dict(self) -> dict:
        return {"marshal_id": self.marshal_id, "name": self.name}

    @classmethod
    def from_dict(cls, row: dict) -> "Marshal":
        return cls(marshal_id=int(row["marshal_id"]), name=row["name"])
