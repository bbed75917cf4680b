# src/catalog_domain/domain/repositories/product_repository.py
"""Product (catalog store) repository interface."""
from abc import ABC, abstractmethod
from typing import Optional

from src.catalog_domain.domain.entities.product import Product
from src.catalog_domain.domain.entities.size_stock import SizeStock


class IProductRepository(ABC):

    @abstractmethod
    def list_products(self, order_by: str = "name") -> list[Product]:
        """Retrieves every product, ordered by `name` or by `created_at` (newest first)."""
        pass

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[Product]:
        """Retrieves a product by id, or None when it does not exist."""
        pass

    @abstractmethod
    def create_product(self, product: Product) -> Product:
        """Inserts a product and returns it with its store-assigned id and version."""
        pass

    @abstractmethod
    def update_product(self, product: Product, include_sizes: bool = True) -> Optional[Product]:
        """
        Overwrites the editable fields of a product and bumps its version.

        With `include_sizes=False` the stored sizes are left as they are. With
        `include_sizes=True` the whole `sizes` sequence is replaced, but only if the
        stored version still equals `product.version`, so a stock decrement committed
        in between is never overwritten. Returns None when no row was written.
        """
        pass

    @abstractmethod
    def delete_product(self, product_id: int) -> bool:
        """Deletes a product. Returns False when nothing was deleted."""
        pass

    @abstractmethod
    def update_sizes_if_version(self, product_id: int, sizes: list[SizeStock], expected_version: int) -> bool:
        """
        Conditionally replaces the sizes of a product.

        The write only happens if the stored version still equals `expected_version`;
        returns False when another writer changed the product first.
        """
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Checks that the store answers."""
        pass
