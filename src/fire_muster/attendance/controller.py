from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import require_non_empty
from ..container import Container
from .service import UPDATABLE_FIELDS


def register(app: Flask, container: Container) -> None:
    ledger = container.attendance_ledger
    sessions = container.session_service

    @app.route("/api/sessions/<int:session_id>/attendance", methods=["GET"], endpoint="attendance_list")
    def attendance_list(session_id: int):
        snapshot = sessions.join_session(session_id)
        return jsonify({"success": True, "data": [r.to_dict() for r in snapshot.values()]})

    @app.route(
        "/api/sessions/<int:session_id>/attendance/<int:employee_id>",
        methods=["PUT"],
        endpoint="attendance_upsert",
    )
    def attendance_upsert(session_id: int, employee_id: int):
        data = request.get_json(silent=True) or {}
        sessions.get_session(session_id)
        # Server-side writers merge against the stored row.
        record = ledger.upsert(
            session_id,
            employee_id,
            require_non_empty(data.get("marshal_name", ""), "marshal_name"),
            {k: data[k] for k in UPDATABLE_FIELDS if k in data},
            known=ledger.get(session_id, employee_id),
        )
        return jsonify({"success": True, "data": record.to_dict()})

    @app.route(
        "/api/sessions/<int:session_id>/attendance/<int:employee_id>/cycle",
        methods=["POST"],
        endpoint="attendance_cycle",
    )
    def attendance_cycle(session_id: int, employee_id: int):
        data = request.get_json(silent=True) or {}
        sessions.get_session(session_id)
        record = ledger.cycle_status(
            session_id,
            employee_id,
            require_non_empty(data.get("marshal_name", ""), "marshal_name"),
            known=ledger.get(session_id, employee_id),
        )
        return jsonify({"success": True, "data": record.to_dict()})
