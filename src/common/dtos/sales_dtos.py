"""Data Transfer Objects for recorded sales."""

from dataclasses import dataclass

from src.sales_domain.domain.entities.sale import Sale, SaleItem


@dataclass
class SaleReceiptDTO:
    """Confirmation handed back to the caller after a sale is fully written."""

    sale: Sale
    item: SaleItem
    product_id: int
    size: str
    remaining_stock: int
    attempts: int = 1  # How many optimistic attempts the write needed
