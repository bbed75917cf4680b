# tests/fakes.py
"""In-memory repositories with the same contract as the MySQL ones, for service-level tests."""

import threading
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from src.catalog_domain.domain.entities.product import Product
from src.catalog_domain.domain.entities.size_stock import SizeStock
from src.catalog_domain.domain.repositories.product_repository import IProductRepository
from src.sales_domain.domain.entities.sale import Sale, SaleItem, SaleStatus
from src.sales_domain.domain.repositories.sale_repository import ISaleRepository


class InMemoryProductRepository(IProductRepository):

    def __init__(self) -> None:
        self._rows: dict[int, Product] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        # When set, the first get_product of each thread waits here, forcing concurrent readers to interleave
        self.read_barrier: Optional[threading.Barrier] = None
        self._threads_past_barrier: set[int] = set()

    def list_products(self, order_by: str = "name") -> list[Product]:
        with self._lock:
            products = list(self._rows.values())
        if order_by == "created_at":
            return sorted(products, key=lambda p: p.id, reverse=True)
        return sorted(products, key=lambda p: (p.name, p.id))

    def get_product(self, product_id: int) -> Optional[Product]:
        with self._lock:
            product = self._rows.get(product_id)
        if self.read_barrier is not None and threading.get_ident() not in self._threads_past_barrier:
            self._threads_past_barrier.add(threading.get_ident())
            self.read_barrier.wait(timeout=5)
        return product

    def create_product(self, product: Product) -> Product:
        with self._lock:
            created = replace(product, id=self._next_id, version=1)
            self._rows[created.id] = created
            self._next_id += 1
            return created

    def update_product(self, product: Product, include_sizes: bool = True) -> Optional[Product]:
        with self._lock:
            current = self._rows.get(product.id)
            if current is None:
                return None
            if include_sizes and current.version != product.version:
                return None
            updated = replace(
                product,
                sizes=product.sizes if include_sizes else current.sizes,
                version=current.version + 1,
                created_at=current.created_at,
            )
            self._rows[product.id] = updated
            return updated

    def delete_product(self, product_id: int) -> bool:
        with self._lock:
            return self._rows.pop(product_id, None) is not None

    def update_sizes_if_version(self, product_id: int, sizes: list[SizeStock], expected_version: int) -> bool:
        with self._lock:
            current = self._rows.get(product_id)
            if current is None or current.version != expected_version:
                return False
            self._rows[product_id] = replace(current, sizes=list(sizes), version=current.version + 1)
            return True

    def ping(self) -> bool:
        return True


class InMemorySaleRepository(ISaleRepository):

    def __init__(self) -> None:
        self.sales: dict[int, Sale] = {}
        self.items: list[SaleItem] = []
        self._next_sale_id = 1
        self._next_item_id = 1
        self._lock = threading.Lock()

    def insert_sale(self, sale: Sale) -> Sale:
        with self._lock:
            stored = replace(sale, id=self._next_sale_id)
            self.sales[stored.id] = stored
            self._next_sale_id += 1
            return stored

    def insert_sale_item(self, item: SaleItem) -> SaleItem:
        with self._lock:
            stored = replace(item, id=self._next_item_id)
            self.items.append(stored)
            self._next_item_id += 1
            return stored

    def delete_sale_items(self, sale_id: int) -> None:
        with self._lock:
            self.items = [item for item in self.items if item.sale_id != sale_id]

    def mark_sale_failed(self, sale_id: int) -> None:
        with self._lock:
            self.sales[sale_id] = replace(self.sales[sale_id], status=SaleStatus.FAILED)

    def _with_items(self, sale: Sale) -> Sale:
        return replace(sale, items=tuple(item for item in self.items if item.sale_id == sale.id))

    def list_sales(self, status: SaleStatus = SaleStatus.COMPLETED) -> list[Sale]:
        with self._lock:
            ordered = sorted(self.sales.values(), key=lambda s: (s.created_at, s.id))
            return [self._with_items(s) for s in ordered if s.status == status]

    def list_recent_sales(self, limit: int = 5) -> list[Sale]:
        return list(reversed(self.list_sales()))[:limit]

    def ping(self) -> bool:
        return True


def make_sale(sale_id: int, amount: str, created_at: datetime, *items: tuple) -> Sale:
    """Builds a completed sale; items are (product_id, quantity, unit_price, size) tuples."""
    return Sale(
        id=sale_id,
        total_amount=Decimal(amount),
        status=SaleStatus.COMPLETED,
        created_at=created_at,
        items=tuple(
            SaleItem(
                id=sale_id * 10 + idx,
                sale_id=sale_id,
                product_id=product_id,
                quantity=quantity,
                unit_price=Decimal(unit_price),
                size=size,
            )
            for idx, (product_id, quantity, unit_price, size) in enumerate(items)
        ),
    )
