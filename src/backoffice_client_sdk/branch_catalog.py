from __future__ import annotations

import logging
from typing import Protocol

from .exceptions import ApiError
from .models import Branch
from .notifications import NotificationCenter

logger = logging.getLogger(__name__)

LOAD_FAILURE_TITLE = "Error"
BRANCHES_LOAD_FAILURE = "Could not load the available branches."


class BranchSource(Protocol):
    def list_branches(self) -> list[Branch]: ...


class BranchCatalog:
    def __init__(self, client: BranchSource, notifications: NotificationCenter) -> None:
        self.client = client
        self.notifications = notifications
        self.branches: list[Branch] = []
        self.last_error: str | None = None

    def load(self) -> list[Branch]:
        try:
            branches = self.client.list_branches()
        except (ApiError, ValueError) as exc:
            logger.warning("branches_load_failure", extra={"error": str(exc)})
            self.branches = []
            self.last_error = BRANCHES_LOAD_FAILURE
            self.notifications.error(LOAD_FAILURE_TITLE, BRANCHES_LOAD_FAILURE)
            return []
        self.branches = list(branches)
        self.last_error = None
        logger.info("branches_loaded", extra={"count": len(self.branches)})
        return list(self.branches)

    def get(self, branch_id: int | None) -> Branch | None:
        if branch_id is None:
            return None
        return next((branch for branch in self.branches if branch.id == branch_id), None)

    def name_of(self, branch_id: int | None) -> str | None:
        branch = self.get(branch_id)
        return branch.name if branch else None

    def destination_options(self, source_branch_id: int | None) -> list[Branch]:
        return [branch for branch in self.branches if branch.id != source_branch_id]
