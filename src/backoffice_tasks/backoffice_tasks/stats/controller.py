from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import api_view
from ..container import Container
from ..core.constants import DEFAULT_LEADERBOARD_LIMIT
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    service = container.stats_service

    @app.route("/api/leaderboard", methods=["GET"], endpoint="api_leaderboard")
    @api_view
    def leaderboard(viewer):
        limit_s = request.args.get("limit") or str(DEFAULT_LEADERBOARD_LIMIT)
        if not limit_s.isdigit():
            raise ValidationError("Giới hạn không hợp lệ")
        rows = service.leaderboard(limit=int(limit_s))
        return jsonify({"success": True, "leaderboard": [s.to_dict() for s in rows]})

    @app.route("/api/stats/me", methods=["GET"], endpoint="api_stats_me")
    @api_view
    def my_stats(viewer):
        return jsonify({"success": True, "stats": service.get_user_stats(viewer.user_id).to_dict()})
