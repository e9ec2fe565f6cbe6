from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import clean_ids, optional_text, require_non_empty
from ..core.constants import DEFAULT_BUSINESS_TIMEZONE, SYSTEM_USER_ID
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..tasks.model import AuthenticatedViewer, Viewer
from ..tasks.policy import viewer_id
from .model import Project
from .repository import ProjectRepository

DEFAULT_COLOR = "#fc5d01"


class ProjectService:
    def __init__(self, projects: ProjectRepository, *, timezone: str = DEFAULT_BUSINESS_TIMEZONE):
        self._projects = projects
        self._timezone = timezone

    def create_project(
        self,
        viewer: Viewer,
        *,
        name: str,
        description: str = "",
        color: str = DEFAULT_COLOR,
        members: Iterable[str] = (),
        now: datetime | None = None,
    ) -> Project:
        now = now or now_local(self._timezone)
        return self._projects.create(
            name=require_non_empty(name, "Tên dự án"),
            description=optional_text(description, "Mô tả"),
            color=optional_text(color, "Màu") or DEFAULT_COLOR,
            created_by=viewer_id(viewer) or SYSTEM_USER_ID,
            members=clean_ids(members),
            created_at=now,
        )

    def list_projects(self) -> Sequence[Project]:
        return self._projects.list_all()

    def get_project(self, project_id: str) -> Project:
        project = self._projects.get(str(project_id))
        if project is None:
            raise NotFoundError("Không tìm thấy dự án")
        return project

    def _require_owner(self, viewer: Viewer, project: Project) -> None:
        if isinstance(viewer, AuthenticatedViewer) and not viewer.is_admin and viewer.user_id != project.created_by:
            raise AuthorizationError("Bạn không có quyền")

    def update_project(
        self,
        viewer: Viewer,
        project_id: str,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
        members: Optional[Iterable[str]] = None,
        now: datetime | None = None,
    ) -> Project:
        now = now or now_local(self._timezone)
        project = self.get_project(project_id)
        self._require_owner(viewer, project)

        updated = replace(
            project,
            name=require_non_empty(name, "Tên dự án") if name is not None else project.name,
            description=optional_text(description, "Mô tả") if description is not None else project.description,
            color=optional_text(color, "Màu") or project.color,
            members=clean_ids(members) if members is not None else project.members,
            updated_at=now,
        )
        self._save(updated)
        return updated

    def invite_member(self, viewer: Viewer, project_id: str, user_id: str, *, now: datetime | None = None) -> Project:
        """Add a member; inviting an existing member changes nothing."""
        user_id = require_non_empty(user_id, "Thành viên")
        project = self.get_project(project_id)
        if user_id in project.members:
            return project

        self._require_owner(viewer, project)
        updated = replace(project, members=project.members + (user_id,), updated_at=now or now_local(self._timezone))
        self._save(updated)
        return updated

    def delete_project(self, viewer: Viewer, project_id: str) -> None:
        project = self.get_project(project_id)
        self._require_owner(viewer, project)
        if not self._projects.delete(project.project_id):
            raise ValidationError("Xóa dự án thất bại")

    def _save(self, project: Project) -> None:
        ok = self._projects.update(
            project_id=project.project_id,
            name=project.name,
            description=project.description,
            color=project.color,
            members=project.members,
            updated_at=project.updated_at,
        )
        if not ok:
            raise NotFoundError("Không tìm thấy dự án")
