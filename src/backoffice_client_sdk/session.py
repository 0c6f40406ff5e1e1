from __future__ import annotations

from dataclasses import dataclass

from .clients.branches_client import BranchesClient
from .clients.inventory_client import InventoryClient
from .clients.transfers_client import TransfersClient
from .config import ClientConfig
from .http_client import HttpClient


@dataclass
class ApiSession:
    config: ClientConfig
    token: str | None = None
    http: HttpClient | None = None

    def __post_init__(self) -> None:
        if not self.token:
            self.token = self.config.api_token
        if self.http is None:
            self.http = HttpClient(config=self.config)

    def branches_client(self) -> BranchesClient:
        return BranchesClient(http=self.http, access_token=self.token)

    def inventory_client(self) -> InventoryClient:
        return InventoryClient(http=self.http, access_token=self.token, max_pages=self.config.inventory_max_pages)

    def transfers_client(self) -> TransfersClient:
        return TransfersClient(http=self.http, access_token=self.token)
