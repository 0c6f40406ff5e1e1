from __future__ import annotations

from typing import Sequence

from .models import InventoryItem


def filter_snapshot(snapshot: Sequence[InventoryItem], term: str | None) -> list[InventoryItem]:
    """Case-insensitive substring match on name or barcode.

    A blank term returns the snapshot as is. A non-blank term is matched
    untrimmed, so surrounding spaces are part of the needle.
    """
    if not term or not term.strip():
        return list(snapshot)
    needle = term.lower()
    return [item for item in snapshot if _matches(item, needle)]


def _matches(item: InventoryItem, needle: str) -> bool:
    name = (item.name or "").lower()
    barcode = (item.barcode or "").lower()
    return needle in name or needle in barcode
