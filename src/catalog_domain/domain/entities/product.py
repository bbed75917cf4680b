"""Product entity."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from .size_stock import SizeStock, sizes_to_json


@dataclass
class Product:
    """A catalog product with its size variants. Owned exclusively by the catalog store."""

    name: str
    price: Decimal
    cost: Decimal
    sizes: list[SizeStock] = field(default_factory=list)
    sku: str | None = None
    image_url: str | None = None  # Opaque, managed by the upload service
    id: int | None = None  # Assigned by the store on creation
    version: int = 0  # Bumped by the store on every write, used for compare-and-swap
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        """Post-initialization for validation."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Product name cannot be empty.")
        if self.price < 0:
            raise ValueError("Price cannot be negative.")
        if self.cost < 0:
            raise ValueError("Cost cannot be negative.")
        labels = [s.size for s in self.sizes]
        duplicates = sorted({label for label in labels if labels.count(label) > 1})
        if duplicates:
            raise ValueError(f"Duplicate sizes: {', '.join(duplicates)}")

    @property
    def total_stock(self) -> int:
        return sum(s.stock for s in self.sizes)

    def find_size(self, label: str) -> SizeStock | None:
        for entry in self.sizes:
            if entry.size == label:
                return entry
        return None

    def sizes_after_sale(self, label: str, quantity: int) -> list[SizeStock]:
        """
        Returns the sizes sequence with `quantity` units of `label` removed.
        All other entries are kept as they are, in the same order.
        """
        updated = []
        for entry in self.sizes:
            if entry.size == label:
                # SizeStock refuses negative stock
                entry = SizeStock(size=entry.size, stock=entry.stock - quantity)
            updated.append(entry)
        return updated

    def sizes_to_json(self) -> str:
        return sizes_to_json(self.sizes)
