from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import optional_int, optional_text, require_non_empty
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


class EmployeeService:
    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def add_employee(self, name: str, *, dept: Optional[str] = None, marshal_id=None) -> Employee:
        employee = self._employees.create(
            name=require_non_empty(name, "Employee name"),
            dept=optional_text(dept),
            marshal_id=optional_int(marshal_id, "marshal_id"),
        )
        logger.info("Employee %s added (id=%s, marshal=%s)", employee.name, employee.employee_id, employee.marshal_id)
        return employee

    def list_employees(self, *, marshal_id=None) -> Sequence[Employee]:
        marshal_id = optional_int(marshal_id, "marshal_id")
        if marshal_id is None:
            return self._employees.list_all()
        return self._employees.list_by_marshal(marshal_id)

    def remove_employee(self, employee_id: int) -> bool:
        removed = self._employees.delete_by_id(int(employee_id))
        if removed:
            logger.info("Employee %s removed", employee_id)
        return removed
