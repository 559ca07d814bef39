from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import optional_int, optional_text, require_non_empty
from ..container import Container
from ..core.exceptions import NotFoundError


def register(app: Flask, container: Container) -> None:
    sessions = container.session_service

    @app.route("/api/sessions", methods=["GET"], endpoint="sessions_list")
    def sessions_list():
        if request.args.get("active") in {"1", "true", "yes"}:
            items = sessions.list_active()
        else:
            items = sessions.list_sessions(limit=optional_int(request.args.get("limit"), "limit"))
        return jsonify({"success": True, "data": [s.to_dict() for s in items]})

    @app.route("/api/sessions", methods=["POST"], endpoint="sessions_start")
    def sessions_start():
        data = request.get_json(silent=True) or {}
        session = sessions.start_drill(require_non_empty(data.get("started_by", ""), "started_by"))
        return jsonify({"success": True, "data": session.to_dict(), "message": "Drill started"}), 201

    @app.route("/api/sessions/<int:session_id>", methods=["GET"], endpoint="sessions_get")
    def sessions_get(session_id: int):
        return jsonify({"success": True, "data": sessions.get_session(session_id).to_dict()})

    @app.route("/api/sessions/<int:session_id>/stop", methods=["POST"], endpoint="sessions_stop")
    def sessions_stop(session_id: int):
        data = request.get_json(silent=True) or {}
        session = sessions.stop_drill(session_id, optional_text(data.get("ended_by")))
        return jsonify({"success": True, "data": session.to_dict(), "message": "Drill stopped"})

    @app.route("/api/sessions/<int:session_id>", methods=["DELETE"], endpoint="sessions_delete")
    def sessions_delete(session_id: int):
        if not sessions.delete_session(session_id):
            raise NotFoundError(f"Drill session {session_id} does not exist")
        return jsonify({"success": True, "message": "Drill deleted"})

    @app.route("/api/sessions/<int:session_id>/report", methods=["GET"], endpoint="sessions_report")
    def sessions_report(session_id: int):
        session = sessions.get_session(session_id)
        report = container.report_service.build(
            session=session,
            employees=container.employee_service.list_employees(),
            marshals=container.marshal_service.list_marshals(),
            attendance=sessions.join_session(session_id),
        )
        if request.args.get("format") == "html":
            return app.response_class(report.html, mimetype="text/html")
        return app.response_class(report.text, mimetype="text/plain")
