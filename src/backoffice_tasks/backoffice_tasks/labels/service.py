from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_BUSINESS_TIMEZONE, SYSTEM_USER_ID
from ..core.exceptions import AuthorizationError, NotFoundError
from ..tasks.model import AuthenticatedViewer, Viewer
from ..tasks.policy import viewer_id
from .model import Label
from .repository import LabelRepository

logger = logging.getLogger(__name__)

DEFAULT_LABEL_COLOR = "#6b7280"


class LabelService:
    """Shared tag catalogue; tasks reference labels by id."""

    def __init__(self, labels: LabelRepository, *, timezone: str = DEFAULT_BUSINESS_TIMEZONE):
        self._labels = labels
        self._timezone = timezone

    def create_label(
        self,
        viewer: Viewer,
        *,
        name: str,
        color: str = DEFAULT_LABEL_COLOR,
        now: datetime | None = None,
    ) -> Label:
        label = self._labels.create(
            name=require_non_empty(name, "Tên nhãn"),
            color=optional_text(color, "Màu") or DEFAULT_LABEL_COLOR,
            created_by=viewer_id(viewer) or SYSTEM_USER_ID,
            created_at=now or now_local(self._timezone),
        )
        logger.info("Created label %s", label.label_id)
        return label

    def list_labels(self) -> Sequence[Label]:
        return self._labels.list_all()

    def delete_label(self, viewer: Viewer, label_id: str) -> None:
        """Only the creator or an admin may delete. Tasks keep the dangling id."""
        label = self._labels.get(str(label_id))
        if label is None:
            raise NotFoundError("Không tìm thấy nhãn")
        if isinstance(viewer, AuthenticatedViewer) and not viewer.is_admin and viewer.user_id != label.created_by:
            raise AuthorizationError("Bạn không có quyền")
        if not self._labels.delete(label.label_id):
            raise NotFoundError("Không tìm thấy nhãn")
