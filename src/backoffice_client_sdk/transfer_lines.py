from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .models import InventoryItem

_INTEGER_RE = re.compile(r"^[+-]?\d+$")


class QuantityState(str, Enum):
    COMMITTED = "committed"
    EDITING = "editing"


class AddOutcome(str, Enum):
    ADDED = "added"
    DUPLICATE = "duplicate"


@dataclass
class TransferLine:
    product_id: str
    display_name: str
    barcode: str | None
    source_branch_id: int
    available_quantity: int
    quantity: int = 1
    state: QuantityState = QuantityState.COMMITTED
    last_committed: int = 1

    @classmethod
    def from_item(cls, item: InventoryItem, source_branch_id: int) -> "TransferLine":
        return cls(
            product_id=item.product_id,
            display_name=item.name,
            barcode=item.barcode,
            source_branch_id=source_branch_id,
            available_quantity=item.available_quantity,
        )

    def clamp(self, value: int) -> int:
        return max(1, min(value, self.available_quantity))

    def commit(self, value: int) -> None:
        self.quantity = self.clamp(value)
        self.last_committed = self.quantity
        self.state = QuantityState.COMMITTED

    def begin_editing(self) -> None:
        self.quantity = 0
        self.state = QuantityState.EDITING

    def render(self) -> dict[str, object]:
        return {
            "product_id": self.product_id,
            "name": self.display_name,
            "barcode": self.barcode,
            "source_branch_id": self.source_branch_id,
            "available_quantity": self.available_quantity,
            "quantity": self.quantity,
            "state": self.state.value,
        }


def parse_quantity(raw: object) -> int | None:
    """Return ``raw`` as an int, or None when it is not an integer literal."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not _INTEGER_RE.match(text):
        return None
    return int(text)


def _is_blank(raw: object) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


class TransferLineSet:
    """Ordered cart of transfer lines, at most one line per product.

    Committed quantities always sit in ``[1, available_quantity]``. The only
    way to observe a ``0`` is a line in the ``EDITING`` state, which is what
    the quantity field holds while the user has cleared it to retype.
    """

    def __init__(self) -> None:
        self._lines: dict[str, TransferLine] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[TransferLine]:
        return iter(list(self._lines.values()))

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._lines

    @property
    def lines(self) -> tuple[TransferLine, ...]:
        return tuple(self._lines.values())

    @property
    def product_ids(self) -> tuple[str, ...]:
        return tuple(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def total_units(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def get(self, product_id: str) -> TransferLine | None:
        return self._lines.get(product_id)

    def add(self, item: InventoryItem, source_branch_id: int) -> AddOutcome:
        if item.product_id in self._lines:
            return AddOutcome.DUPLICATE
        self._lines[item.product_id] = TransferLine.from_item(item, source_branch_id)
        return AddOutcome.ADDED

    def remove(self, product_id: str) -> bool:
        return self._lines.pop(product_id, None) is not None

    def set_quantity(self, product_id: str, raw_value: object) -> TransferLine | None:
        """Keystroke path for the quantity field.

        Blank input parks the line in ``EDITING`` with quantity 0, a valid
        integer commits immediately (clamped), anything else is ignored.
        """
        line = self._lines.get(product_id)
        if line is None:
            return None
        if _is_blank(raw_value):
            line.begin_editing()
            return line
        parsed = parse_quantity(raw_value)
        if parsed is not None:
            line.commit(parsed)
        return line

    def commit_quantity(self, product_id: str, raw_value: object = None) -> TransferLine | None:
        """Blur path: always leaves the line ``COMMITTED``.

        ``raw_value`` is the field text at blur time. A blank field resolves
        to 1 whatever the line held before. Unparsable text falls back to the
        last committed quantity.
        """
        line = self._lines.get(product_id)
        if line is None:
            return None
        if _is_blank(raw_value):
            line.commit(1)
            return line
        parsed = parse_quantity(raw_value)
        line.commit(parsed if parsed is not None else line.last_committed)
        return line

    def increment(self, product_id: str) -> TransferLine | None:
        line = self._lines.get(product_id)
        if line is not None:
            line.commit(line.quantity + 1)
        return line

    def decrement(self, product_id: str) -> TransferLine | None:
        line = self._lines.get(product_id)
        if line is not None:
            line.commit(line.quantity - 1)
        return line

    def set_max(self, product_id: str) -> TransferLine | None:
        line = self._lines.get(product_id)
        if line is not None:
            line.commit(line.available_quantity)
        return line

    def clear(self) -> None:
        self._lines.clear()

    def submittable_lines(self) -> list[TransferLine]:
        return [line for line in self._lines.values() if line.quantity > 0]

    def render(self) -> dict[str, object]:
        return {
            "line_count": self.line_count,
            "total_units": self.total_units,
            "rows": [line.render() for line in self._lines.values()],
        }
