from __future__ import annotations

from typing import Any

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import api_view, parse_bool, parse_csv, parse_datetime
from ..common.validators import require_enum, require_str_list
from ..container import Container
from ..core.enums import TaskPriority, TaskStatus
from ..core.exceptions import ValidationError
from .model import AuthenticatedViewer, TaskFilter

# JSON body keys (camelCase, as the front end sends them) -> task fields
BODY_FIELDS = {
    "title": "title",
    "description": "description",
    "dueDate": "due_date",
    "priority": "priority",
    "status": "status",
    "assignedTo": "assigned_to",
    "projectId": "project_id",
    "labels": "labels",
    "isRecurring": "is_recurring",
    "recurringPattern": "recurring_pattern",
    "reminderTime": "reminder_time",
    "completedAt": "completed_at",
}
DATETIME_FIELDS = {"due_date", "reminder_time", "completed_at"}
LIST_FIELDS = {"assigned_to", "labels"}
BOOL_FIELDS = {"is_recurring"}
TEXT_FIELDS = {"title", "description", "priority", "status", "project_id", "recurring_pattern"}


def _read_body() -> dict[str, Any]:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Dữ liệu gửi lên không hợp lệ")

    out: dict[str, Any] = {}
    for key, value in body.items():
        field = BODY_FIELDS.get(key, key)
        if field in DATETIME_FIELDS:
            value = parse_datetime(value, key)
        elif field in LIST_FIELDS:
            value = require_str_list(value, key)
        elif field in BOOL_FIELDS and value is not None and not isinstance(value, bool):
            raise ValidationError(f"{key} phải là true/false")
        elif field in TEXT_FIELDS and value is not None and not isinstance(value, str):
            raise ValidationError(f"{key} không hợp lệ")
        out[field] = value
    return out


def _parse_date_arg(name: str):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} không hợp lệ") from None


def build_filter(viewer: AuthenticatedViewer) -> TaskFilter:
    """TaskFilter from the query string of GET /api/tasks."""
    args = request.args
    statuses = parse_csv(args.get("status"))
    priorities = parse_csv(args.get("priority"))
    assignees = parse_csv(args.get("assigned_to"))
    labels = parse_csv(args.get("labels"))

    return TaskFilter(
        viewer=viewer,
        status=frozenset(require_enum(TaskStatus, s, "Trạng thái") for s in statuses) if statuses else None,
        priority=frozenset(require_enum(TaskPriority, p, "Độ ưu tiên") for p in priorities) if priorities else None,
        assigned_to=frozenset(assignees) if assignees else None,
        project_id=args.get("project_id") or None,
        labels=frozenset(labels) if labels else None,
        due_from=_parse_date_arg("due_from"),
        due_to=_parse_date_arg("due_to"),
        today=parse_bool(args.get("today")),
        overdue=parse_bool(args.get("overdue")),
        next_7_days=parse_bool(args.get("next_7_days")),
        include_templates=parse_bool(args.get("include_templates")),
    )


def register(app: Flask, container: Container) -> None:
    service = container.task_service

    @app.route("/api/tasks", methods=["GET"], endpoint="api_tasks_list")
    @api_view
    def list_tasks(viewer):
        tasks = service.list_tasks(build_filter(viewer))
        return jsonify({"success": True, "tasks": [t.to_dict() for t in tasks]})

    @app.route("/api/tasks", methods=["POST"], endpoint="api_tasks_create")
    @api_view
    def create_task(viewer):
        data = _read_body()
        if data.get("due_date") is None:
            raise ValidationError("Hạn chót không hợp lệ")

        task = service.create_task(
            viewer,
            title=data.get("title") or "",
            due_date=data["due_date"],
            description=data.get("description") or "",
            priority=data.get("priority") or TaskPriority.MEDIUM,
            assigned_to=data.get("assigned_to") or (),
            project_id=data.get("project_id"),
            labels=data.get("labels") or (),
            is_recurring=bool(data.get("is_recurring")),
            recurring_pattern=data.get("recurring_pattern"),
            reminder_time=data.get("reminder_time"),
        )
        return jsonify({"success": True, "task": task.to_dict()}), 201

    @app.route("/api/tasks/mine", methods=["GET"], endpoint="api_tasks_mine")
    @api_view
    def my_tasks(viewer):
        tasks = service.get_user_tasks(viewer)
        return jsonify({"success": True, "tasks": [t.to_dict() for t in tasks]})

    @app.route("/api/tasks/report/today", methods=["GET"], endpoint="api_tasks_report_today")
    @api_view
    def report_today(viewer):
        return jsonify({"success": True, "report": service.daily_report(viewer).to_dict()})

    @app.route("/api/tasks/<task_id>", methods=["GET"], endpoint="api_tasks_get")
    @api_view
    def get_task(viewer, task_id: str):
        return jsonify({"success": True, "task": service.get_task(viewer, task_id).to_dict()})

    @app.route("/api/tasks/<task_id>", methods=["PATCH"], endpoint="api_tasks_update")
    @api_view
    def update_task(viewer, task_id: str):
        task = service.update_task(viewer, task_id, _read_body())
        return jsonify({"success": True, "task": task.to_dict()})

    @app.route("/api/tasks/<task_id>/complete", methods=["POST"], endpoint="api_tasks_complete")
    @api_view
    def complete_task(viewer, task_id: str):
        task = service.complete_task(viewer, task_id)
        return jsonify({"success": True, "task": task.to_dict()})

    @app.route("/api/tasks/<task_id>", methods=["DELETE"], endpoint="api_tasks_delete")
    @api_view
    def delete_task(viewer, task_id: str):
        service.delete_task(viewer, task_id)
        return jsonify({"success": True})
