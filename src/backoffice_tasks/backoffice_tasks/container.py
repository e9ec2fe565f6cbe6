from __future__ import annotations

from dataclasses import dataclass

from .core.constants import DEFAULT_BUSINESS_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .labels.mysql_label_repository import MySQLLabelRepository
from .labels.repository import LabelRepository
from .labels.service import LabelService
from .projects.mysql_project_repository import MySQLProjectRepository
from .projects.repository import ProjectRepository
from .projects.service import ProjectService
from .stats.mysql_user_stats_repository import MySQLUserStatsRepository
from .stats.repository import UserStatsRepository
from .stats.service import StatsService
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.repository import TaskRepository
from .tasks.service import TaskService


@dataclass(frozen=True)
class Container:
    tasks_repo: TaskRepository
    projects_repo: ProjectRepository
    stats_repo: UserStatsRepository
    labels_repo: LabelRepository

    task_service: TaskService
    project_service: ProjectService
    stats_service: StatsService
    label_service: LabelService


def wire(
    *,
    tasks_repo: TaskRepository,
    projects_repo: ProjectRepository,
    stats_repo: UserStatsRepository,
    labels_repo: LabelRepository,
    timezone: str = DEFAULT_BUSINESS_TIMEZONE,
) -> Container:
    """Build services on top of any repository implementations."""
    stats_service = StatsService(stats_repo, timezone=timezone)
    return Container(
        tasks_repo=tasks_repo,
        projects_repo=projects_repo,
        stats_repo=stats_repo,
        labels_repo=labels_repo,
        task_service=TaskService(tasks_repo, stats_service, timezone=timezone),
        project_service=ProjectService(projects_repo, timezone=timezone),
        stats_service=stats_service,
        label_service=LabelService(labels_repo, timezone=timezone),
    )


def build_container(*, db_config: dict, timezone: str = DEFAULT_BUSINESS_TIMEZONE) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return wire(
        tasks_repo=MySQLTaskRepository(conn),
        projects_repo=MySQLProjectRepository(conn),
        stats_repo=MySQLUserStatsRepository(conn),
        labels_repo=MySQLLabelRepository(conn),
        timezone=timezone,
    )
