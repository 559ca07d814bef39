from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container
from ..core.exceptions import NotFoundError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/marshals", methods=["GET"], endpoint="marshals_list")
    def marshals_list():
        marshals = container.marshal_service.list_marshals()
        return jsonify({"success": True, "data": [m.to_dict() for m in marshals]})

    @app.route("/api/marshals", methods=["POST"], endpoint="marshals_create")
    def marshals_create():
        data = request.get_json(silent=True) or {}
        marshal = container.marshal_service.add_marshal(data.get("name", ""))
        return jsonify({"success": True, "data": marshal.to_dict(), "message": "Marshal added"}), 201

    @app.route("/api/marshals/<int:marshal_id>", methods=["DELETE"], endpoint="marshals_delete")
    def marshals_delete(marshal_id: int):
        if not container.marshal_service.remove_marshal(marshal_id):
            raise NotFoundError(f"Marshal {marshal_id} does not exist")
        return jsonify({"success": True, "message": "Marshal removed"})
