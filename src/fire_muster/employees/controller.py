from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container
from ..core.exceptions import NotFoundError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/employees", methods=["GET"], endpoint="employees_list")
    def employees_list():
        employees = container.employee_service.list_employees(marshal_id=request.args.get("marshal_id"))
        return jsonify({"success": True, "data": [e.to_dict() for e in employees]})

    @app.route("/api/employees", methods=["POST"], endpoint="employees_create")
    def employees_create():
        data = request.get_json(silent=True) or {}
        employee = container.employee_service.add_employee(
            data.get("name", ""),
            dept=data.get("dept"),
            marshal_id=data.get("marshal_id"),
        )
        return jsonify({"success": True, "data": employee.to_dict(), "message": "Employee added"}), 201

    @app.route("/api/employees/<int:employee_id>", methods=["DELETE"], endpoint="employees_delete")
    def employees_delete(employee_id: int):
        if not container.employee_service.remove_employee(employee_id):
            raise NotFoundError(f"Employee {employee_id} does not exist")
        return jsonify({"success": True, "message": "Employee removed"})
