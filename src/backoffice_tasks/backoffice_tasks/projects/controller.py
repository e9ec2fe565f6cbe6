from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import api_view
from ..common.validators import require_str_list
from ..container import Container
from ..core.exceptions import ValidationError


def _read_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Dữ liệu gửi lên không hợp lệ")
    return body


def register(app: Flask, container: Container) -> None:
    projects = container.project_service
    tasks = container.task_service

    @app.route("/api/projects", methods=["GET"], endpoint="api_projects_list")
    @api_view
    def list_projects(viewer):
        return jsonify({"success": True, "projects": [p.to_dict() for p in projects.list_projects()]})

    @app.route("/api/projects", methods=["POST"], endpoint="api_projects_create")
    @api_view
    def create_project(viewer):
        body = _read_body()
        project = projects.create_project(
            viewer,
            name=body.get("name") or "",
            description=body.get("description") or "",
            color=body.get("color") or "",
            members=require_str_list(body.get("members"), "members") or (),
        )
        return jsonify({"success": True, "project": project.to_dict()}), 201

    @app.route("/api/projects/<project_id>", methods=["GET"], endpoint="api_projects_get")
    @api_view
    def get_project(viewer, project_id: str):
        return jsonify({"success": True, "project": projects.get_project(project_id).to_dict()})

    @app.route("/api/projects/<project_id>", methods=["PATCH"], endpoint="api_projects_update")
    @api_view
    def update_project(viewer, project_id: str):
        body = _read_body()
        project = projects.update_project(
            viewer,
            project_id,
            name=body.get("name"),
            description=body.get("description"),
            color=body.get("color"),
            members=require_str_list(body.get("members"), "members"),
        )
        return jsonify({"success": True, "project": project.to_dict()})

    @app.route("/api/projects/<project_id>", methods=["DELETE"], endpoint="api_projects_delete")
    @api_view
    def delete_project(viewer, project_id: str):
        projects.delete_project(viewer, project_id)
        return jsonify({"success": True})

    @app.route("/api/projects/<project_id>/members", methods=["POST"], endpoint="api_projects_invite")
    @api_view
    def invite_member(viewer, project_id: str):
        body = _read_body()
        project = projects.invite_member(viewer, project_id, body.get("userId"))
        return jsonify({"success": True, "project": project.to_dict()})

    @app.route("/api/projects/<project_id>/tasks", methods=["GET"], endpoint="api_projects_tasks")
    @api_view
    def project_tasks(viewer, project_id: str):
        items = tasks.get_project_tasks(viewer, project_id)
        return jsonify({"success": True, "tasks": [t.to_dict() for t in items]})
