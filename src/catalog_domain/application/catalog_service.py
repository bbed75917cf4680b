# src/catalog_domain/application/catalog_service.py
"""Application service for catalog management."""

import logging
from dataclasses import replace
from typing import Any, Iterable

from src.catalog_domain.domain.entities.product import Product
from src.catalog_domain.domain.entities.size_stock import SizeStock
from src.catalog_domain.domain.repositories.product_repository import IProductRepository
from src.common.exceptions.custom_exceptions import ConcurrentStockConflict, ValidationError
from src.common.utils.money_utils import to_money

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class CatalogApplicationService:
    """Catalog CRUD with every input validated before the store is touched."""

    def __init__(self, product_repo: IProductRepository) -> None:
        self.product_repo = product_repo

    def list_products(self, order_by: str = "name") -> list[Product]:
        return self.product_repo.list_products(order_by=order_by)

    def search_products(self, term: str) -> list[Product]:
        """Case-insensitive match of `term` against product name or sku. An empty term matches everything."""
        products = self.product_repo.list_products()
        needle = (term or "").strip().lower()
        if not needle:
            return products
        return [p for p in products if needle in p.name.lower() or (p.sku and needle in p.sku.lower())]

    def get_product(self, product_id: int) -> Product:
        product = self.product_repo.get_product(product_id)
        if product is None:
            raise ValidationError(f"Product {product_id} does not exist", field="product_id", entity_id=product_id)
        return product

    def create_product(
        self,
        name: str,
        price: Any,
        cost: Any,
        sizes: Iterable[Any] = (),
        sku: str | None = None,
        image_url: str | None = None,
    ) -> Product:
        product = self._build_product(name=name, price=price, cost=cost, sizes=sizes, sku=sku, image_url=image_url)
        created = self.product_repo.create_product(product)
        logger.info(f"Product {created.id} '{created.name}' added with {created.total_stock} units")
        return created

    def update_product(
        self,
        product_id: int,
        name: Any = _UNSET,
        price: Any = _UNSET,
        cost: Any = _UNSET,
        sizes: Any = _UNSET,
        sku: Any = _UNSET,
        image_url: Any = _UNSET,
    ) -> Product:
        """
        Applies the given fields to an existing product. Fields left out keep their value;
        `sizes`, when given, replaces the whole sequence.

        Stock left out is never written back, so sales recorded meanwhile are kept. Given
        sizes are only written if no sale touched the product since it was read here;
        otherwise ConcurrentStockConflict is raised and the operator must reload the stock.
        """
        current = self.get_product(product_id)
        replaces_sizes = sizes is not _UNSET
        candidate = self._build_product(
            name=current.name if name is _UNSET else name,
            price=current.price if price is _UNSET else price,
            cost=current.cost if cost is _UNSET else cost,
            sizes=sizes if replaces_sizes else current.sizes,
            sku=current.sku if sku is _UNSET else sku,
            image_url=current.image_url if image_url is _UNSET else image_url,
            entity_id=product_id,
        )
        updated = self.product_repo.update_product(
            replace(candidate, id=product_id, version=current.version, created_at=current.created_at),
            include_sizes=replaces_sizes,
        )
        if updated is None:
            if replaces_sizes and self.product_repo.get_product(product_id) is not None:
                logger.warning(f"Stock of product {product_id} changed while it was being edited, edit refused")
                raise ConcurrentStockConflict(product_id, None, attempts=1)
            raise ValidationError(f"Product {product_id} does not exist", field="product_id", entity_id=product_id)
        logger.info(f"Product {product_id} updated")
        return updated

    def delete_product(self, product_id: int) -> None:
        """Removes a product from the catalog. Past sales keep referring to its id."""
        if not self.product_repo.delete_product(product_id):
            raise ValidationError(f"Product {product_id} does not exist", field="product_id", entity_id=product_id)
        logger.info(f"Product {product_id} deleted")

    def _build_product(
        self,
        name: Any,
        price: Any,
        cost: Any,
        sizes: Iterable[Any],
        sku: str | None,
        image_url: str | None,
        entity_id: int | None = None,
    ) -> Product:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Product name is required", field="name", value=name, entity_id=entity_id)

        checked_price = to_money(price)
        if checked_price is None or checked_price < 0:
            raise ValidationError(
                "Price must be a non-negative amount in whole cents", field="price", value=price, entity_id=entity_id
            )

        checked_cost = to_money(cost)
        if checked_cost is None or checked_cost < 0:
            raise ValidationError(
                "Cost must be a non-negative amount in whole cents", field="cost", value=cost, entity_id=entity_id
            )

        checked_sizes = self._parse_sizes(sizes, entity_id)
        return Product(
            name=name.strip(),
            price=checked_price,
            cost=checked_cost,
            sizes=checked_sizes,
            sku=sku.strip() if isinstance(sku, str) and sku.strip() else None,
            image_url=image_url or None,
        )

    @staticmethod
    def _parse_sizes(sizes: Iterable[Any], entity_id: int | None) -> list[SizeStock]:
        """Accepts SizeStock objects or {"size": ..., "stock": ...} dicts."""
        parsed: list[SizeStock] = []
        seen: set[str] = set()
        for idx, entry in enumerate(sizes or ()):
            if isinstance(entry, SizeStock):
                label, stock = entry.size, entry.stock
            elif isinstance(entry, dict):
                label, stock = entry.get("size"), entry.get("stock")
            else:
                raise ValidationError(f"Size {idx}: unsupported value", field="sizes", value=entry, entity_id=entity_id)

            if not isinstance(label, str) or not label.strip():
                raise ValidationError(f"Size {idx}: label is required", field="sizes", value=entry, entity_id=entity_id)
            label = label.strip()
            if label in seen:
                raise ValidationError(f"Size {label!r} appears twice", field="sizes", value=label, entity_id=entity_id)
            if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
                raise ValidationError(
                    f"Size {label!r}: stock must be a non-negative integer",
                    field="sizes",
                    value=stock,
                    entity_id=entity_id,
                )
            seen.add(label)
            parsed.append(SizeStock(size=label, stock=stock))
        return parsed
