"""Size/stock value object."""

import json
from dataclasses import dataclass


@dataclass(frozen=True)  # Value objects are immutable
class SizeStock:
    """Stock count of one size variant of a product."""

    size: str
    stock: int

    def __post_init__(self) -> None:
        if not isinstance(self.size, str) or not self.size.strip():
            raise ValueError("Size label cannot be empty.")
        if isinstance(self.stock, bool) or not isinstance(self.stock, int):
            raise ValueError(f"Stock for size {self.size!r} must be an integer.")
        if self.stock < 0:
            raise ValueError(f"Stock for size {self.size!r} cannot be negative.")

    def to_dict(self) -> dict:
        return {"size": self.size, "stock": self.stock}

    @classmethod
    def from_dict(cls, data: dict) -> "SizeStock":
        return cls(size=data.get("size"), stock=data.get("stock"))


def sizes_to_json(sizes: list[SizeStock]) -> str:
    """Serializes a sizes sequence for the `sizes` JSON column."""
    return json.dumps([s.to_dict() for s in sizes])


def sizes_from_json(raw: str | bytes | list | None) -> list[SizeStock]:
    """Parses the `sizes` JSON column (str, bytes or an already decoded list)."""
    if raw is None:
        return []
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        raw = json.loads(raw) if raw.strip() else []
    return [SizeStock.from_dict(entry) for entry in raw]
