from __future__ import annotations

import logging
from datetime import datetime
from functools import wraps
from typing import Any, Optional
from zoneinfo import ZoneInfo

from flask import current_app, jsonify, session

from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..tasks.model import AuthenticatedViewer

logger = logging.getLogger(__name__)

TRUE_VALUES = {"1", "true", "yes", "on"}


def json_error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def current_viewer() -> Optional[AuthenticatedViewer]:
    """Viewer stored in the Flask session by the login flow."""
    user_id = session.get("user_id")
    if not user_id:
        return None
    try:
        role = Role(session.get("role"))
    except ValueError:
        return None
    return AuthenticatedViewer(user_id=str(user_id), role=role)


def api_view(view):
    """Require a session and translate domain errors into JSON responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        viewer = current_viewer()
        if viewer is None:
            return json_error("Unauthorized", 401)
        try:
            return view(viewer, *args, **kwargs)
        except ValidationError as e:
            return json_error(str(e), 400)
        except AuthorizationError as e:
            return json_error(str(e), 403)
        except NotFoundError as e:
            return json_error(str(e), 404)
        except Exception:
            logger.exception("Unhandled error in %s", view.__name__)
            return json_error("Lỗi hệ thống", 500)

    return wrapper


def parse_bool(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in TRUE_VALUES


def parse_csv(value: Optional[str]) -> Optional[list[str]]:
    if not value:
        return None
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or None


def parse_datetime(value: Any, field_name: str) -> Optional[datetime]:
    if value in (None, ""):
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{field_name} không hợp lệ") from None
    if parsed.tzinfo is not None:
        # stored timestamps are naive business-local time
        zone = ZoneInfo(current_app.config["BUSINESS_TIMEZONE"])
        parsed = parsed.astimezone(zone).replace(tzinfo=None)
    return parsed
