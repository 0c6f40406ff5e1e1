from .branches_client import BranchesClient
from .inventory_client import InventoryClient
from .transfers_client import TransfersClient

__all__ = ["BranchesClient", "InventoryClient", "TransfersClient"]
