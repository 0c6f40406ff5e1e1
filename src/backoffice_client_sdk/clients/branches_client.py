from __future__ import annotations

from dataclasses import dataclass

from ..models import Branch
from .base import BaseClient

BRANCHES_PATH = "/api/branches/public/"


@dataclass
class BranchesClient(BaseClient):
    def list_branches(self) -> list[Branch]:
        payload = self._request("GET", BRANCHES_PATH, module="branches", operation="list")
        if isinstance(payload, dict):
            # some deployments paginate this endpoint as well
            payload = payload.get("results")
        if not isinstance(payload, list):
            return []
        return [Branch.model_validate(row) for row in payload]
