from __future__ import annotations

from dataclasses import dataclass, field

from .models import InventoryItem
from .transfer_lines import AddOutcome, TransferLineSet


@dataclass
class TransferDraft:
    source_branch_id: int | None = None
    destination_branch_id: int | None = None
    notes: str | None = None
    lines: TransferLineSet = field(default_factory=TransferLineSet)

    def set_source(self, branch_id: int | None) -> bool:
        """Select the source branch. Returns True when existing lines were dropped."""
        if branch_id == self.source_branch_id:
            return False
        self.source_branch_id = branch_id
        # lines point at the previous branch's snapshot
        had_lines = len(self.lines) > 0
        self.lines.clear()
        return had_lines

    def set_destination(self, branch_id: int | None) -> None:
        self.destination_branch_id = branch_id

    def set_notes(self, notes: str | None) -> None:
        self.notes = notes

    def add_item(self, item: InventoryItem) -> AddOutcome:
        if self.source_branch_id is None:
            raise ValueError("Select a source branch before adding products")
        return self.lines.add(item, self.source_branch_id)

    def reset(self) -> None:
        self.source_branch_id = None
        self.destination_branch_id = None
        self.notes = None
        self.lines.clear()
