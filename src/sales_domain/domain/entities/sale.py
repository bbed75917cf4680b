"""Sale ledger entities."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class SaleStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"  # Set only by compensation of a sale that could not be fully written


@dataclass(frozen=True)
class SaleItem:
    """One line of a sale. `product_id` is a weak reference; the product may be gone since."""

    product_id: int | None
    quantity: int
    unit_price: Decimal
    size: str
    sale_id: int | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValueError("Quantity must be a positive integer.")


@dataclass(frozen=True)  # Ledger entries are append-only
class Sale:
    total_amount: Decimal
    created_at: datetime
    status: SaleStatus = SaleStatus.COMPLETED
    items: tuple[SaleItem, ...] = field(default_factory=tuple)
    id: int | None = None

    @property
    def items_quantity(self) -> int:
        return sum(item.quantity for item in self.items)
