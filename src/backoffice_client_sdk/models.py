from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

PLACEHOLDER_UNIT_PRICE = 1.00


class Branch(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    name: str


class InventoryItem(BaseModel):
    """One product row of a branch stock snapshot."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    product_id: str = Field(alias="id")
    name: str = ""
    barcode: str | None = None
    available_quantity: int = Field(default=0, alias="current_stock")

    @field_validator("product_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: object) -> object:
        # ids arrive as UUID strings or integers depending on the endpoint
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("name", mode="before")
    @classmethod
    def _name_or_blank(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("available_quantity", mode="before")
    @classmethod
    def _stock_floor(cls, value: object) -> object:
        if value is None:
            return 0
        return value


class InventoryPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    count: int | None = None
    next: str | None = None
    previous: str | None = None
    results: list[InventoryItem] = Field(default_factory=list)


class BulkTransferItemPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product: str
    quantity: int
    unit_price: float = PLACEHOLDER_UNIT_PRICE


class BulkTransferCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    from_branch: int
    to_branch: int
    notes: str | None = None
    items: list[BulkTransferItemPayload]


class TransferConfirmation(BaseModel):
    """Backend acknowledgement; only its presence matters to the composer."""

    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    status: str | None = None
