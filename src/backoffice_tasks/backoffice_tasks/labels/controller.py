from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import api_view
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    service = container.label_service

    @app.route("/api/labels", methods=["GET"], endpoint="api_labels_list")
    @api_view
    def list_labels(viewer):
        return jsonify({"success": True, "labels": [lb.to_dict() for lb in service.list_labels()]})

    @app.route("/api/labels", methods=["POST"], endpoint="api_labels_create")
    @api_view
    def create_label(viewer):
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise ValidationError("Dữ liệu gửi lên không hợp lệ")
        label = service.create_label(viewer, name=body.get("name"), color=body.get("color"))
        return jsonify({"success": True, "label": label.to_dict()}), 201

    @app.route("/api/labels/<label_id>", methods=["DELETE"], endpoint="api_labels_delete")
    @api_view
    def delete_label(viewer, label_id: str):
        service.delete_label(viewer, label_id)
        return jsonify({"success": True})
