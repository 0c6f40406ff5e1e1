from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..models import InventoryItem, InventoryPage
from .base import BaseClient

INVENTORY_BY_BRANCH_PATH = "/api/featured-section-products/with_stock_by_branch/"


@dataclass
class InventoryClient(BaseClient):
    max_pages: int = 50

    def get_page(self, branch_id: int, page: int = 1) -> InventoryPage:
        params = build_inventory_params(branch_id, page)
        payload = self._request(
            "GET",
            INVENTORY_BY_BRANCH_PATH,
            params=params,
            module="inventory",
            operation="with_stock_by_branch",
        )
        if isinstance(payload, list):
            return InventoryPage(count=len(payload), results=payload)
        if not isinstance(payload, dict):
            raise ValueError("Expected inventory response to be a JSON object or list")
        return InventoryPage.model_validate(payload)

    def list_branch_inventory(self, branch_id: int) -> list[InventoryItem]:
        items: list[InventoryItem] = []
        page_number = 1
        while True:
            page = self.get_page(branch_id, page_number)
            items.extend(page.results)
            if not page.next or page_number >= self.max_pages:
                return items
            page_number += 1


def build_inventory_params(branch_id: int, page: int) -> dict[str, Any]:
    params: dict[str, Any] = {"branch_id": branch_id}
    if page > 1:
        params["page"] = page
    return params
