from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .transfer_draft import TransferDraft

VALIDATION_TITLE = "Validation error"


class ValidationReason(str, Enum):
    SOURCE_MISSING = "source_missing"
    DESTINATION_MISSING = "destination_missing"
    SOURCE_EQUALS_DESTINATION = "source_equals_destination"
    NO_POSITIVE_LINES = "no_positive_lines"
    LINE_EXCEEDS_STOCK = "line_exceeds_stock"


_MESSAGES = {
    ValidationReason.SOURCE_MISSING: "You must select a source branch.",
    ValidationReason.DESTINATION_MISSING: "You must select a destination branch.",
    ValidationReason.SOURCE_EQUALS_DESTINATION: "The source branch must be different from the destination branch.",
    ValidationReason.NO_POSITIVE_LINES: "You must add at least one product with a quantity greater than 0.",
    ValidationReason.LINE_EXCEEDS_STOCK: "The following quantities exceed the available stock: {names}",
}


@dataclass(frozen=True)
class ValidationOutcome:
    reason: ValidationReason | None = None
    product_ids: tuple[str, ...] = ()
    product_names: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> str | None:
        if self.reason is None:
            return None
        return _MESSAGES[self.reason].format(names=", ".join(self.product_names))

    def render(self) -> dict[str, object]:
        return {
            "valid": self.is_valid,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "product_ids": list(self.product_ids),
        }


VALID = ValidationOutcome()


def validate_draft(draft: TransferDraft) -> ValidationOutcome:
    """Check a draft right before submission.

    Rules run in a fixed order and the first failing one wins, except the
    stock check which reports every offending product at once. Lines with
    quantity 0 are left out of the positive-line and stock checks.
    """
    if draft.source_branch_id is None:
        return ValidationOutcome(ValidationReason.SOURCE_MISSING)
    if draft.destination_branch_id is None:
        return ValidationOutcome(ValidationReason.DESTINATION_MISSING)
    if draft.source_branch_id == draft.destination_branch_id:
        return ValidationOutcome(ValidationReason.SOURCE_EQUALS_DESTINATION)
    positive = draft.lines.submittable_lines()
    if not positive:
        return ValidationOutcome(ValidationReason.NO_POSITIVE_LINES)
    over = [line for line in positive if line.quantity > line.available_quantity]
    if over:
        return ValidationOutcome(
            ValidationReason.LINE_EXCEEDS_STOCK,
            product_ids=tuple(line.product_id for line in over),
            product_names=tuple(line.display_name or line.product_id for line in over),
        )
    return VALID
