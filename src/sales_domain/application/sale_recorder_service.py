# src/sales_domain/application/sale_recorder_service.py
"""
Application service that records a sale against the catalog.

A sale is three separate store writes: the sale header, its line and the stock
decrement. The store offers no transaction spanning them, so the service runs
them as a small saga:

1. Validate the request against a fresh read of the product.
2. Insert the sale, then the sale item.
3. Compare-and-swap the product's sizes against the version read in step 1.

If the swap loses to a concurrent writer, the sale is compensated (items deleted,
sale marked failed) and the whole attempt starts over from step 1, a bounded
number of times. A store failure part-way through is compensated as well, but is
never retried and always surfaces as PartialWriteError.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any

from src.catalog_domain.domain.entities.product import Product
from src.catalog_domain.domain.entities.size_stock import SizeStock
from src.catalog_domain.domain.repositories.product_repository import IProductRepository
from src.common.config.settings import settings
from src.common.dtos.sales_dtos import SaleReceiptDTO
from src.common.exceptions.custom_exceptions import (
    ConcurrentStockConflict,
    DatabaseError,
    PartialWriteError,
    ValidationError,
)
from src.common.utils.date_utils import utc_now
from src.common.utils.money_utils import to_money
from src.sales_domain.domain.entities.sale import Sale, SaleItem, SaleStatus
from src.sales_domain.domain.repositories.sale_repository import ISaleRepository

logger = logging.getLogger(__name__)


class _StockRaceLost(Exception):
    """Internal signal: the compare-and-swap found a newer product version."""


class SaleRecorderService:

    def __init__(
        self,
        product_repo: IProductRepository,
        sale_repo: ISaleRepository,
        max_retries: int | None = None,
    ) -> None:
        self.product_repo = product_repo
        self.sale_repo = sale_repo
        self.max_retries = settings.SALE_MAX_RETRIES if max_retries is None else max_retries

    def record_sale(self, product_id: int, size: str, price: Any, quantity: int = 1) -> SaleReceiptDTO:
        """
        Sells `quantity` units of one size of a product at `price` per unit.

        Raises:
            ValidationError: the request is invalid or there is not enough stock. Nothing is written.
            ConcurrentStockConflict: concurrent writers kept winning until retries ran out. Nothing is left behind.
            PartialWriteError: the store failed after the sale was inserted.
            StoreUnavailableError / DatabaseError: the store failed before anything was written.
        """
        unit_price = self._validate_price(price, product_id)
        self._validate_quantity(quantity, product_id)
        if not isinstance(size, str) or not size.strip():
            raise ValidationError("No size selected", field="size", value=size, entity_id=product_id)

        attempts = 0
        while True:
            attempts += 1
            product = self._load_product(product_id)
            size_entry = self._check_stock(product, size, quantity)
            try:
                receipt = self._write_sale(product, size_entry, unit_price, quantity)
            except _StockRaceLost:
                if attempts > self.max_retries:
                    logger.error(
                        f"Giving up on sale of product {product_id} size {size!r} after {attempts} conflicting attempts"
                    )
                    raise ConcurrentStockConflict(product_id, size, attempts)
                logger.warning(
                    f"Stock of product {product_id} changed while selling size {size!r}, retrying (attempt {attempts})"
                )
                continue

            receipt.attempts = attempts
            logger.info(
                f"Sale {receipt.sale.id}: {quantity} x {product.name} ({size}) at {unit_price}, "
                f"{receipt.remaining_stock} left"
            )
            return receipt

    @staticmethod
    def _validate_price(price: Any, product_id: int) -> Decimal:
        unit_price = to_money(price)
        if unit_price is None or unit_price <= 0:
            raise ValidationError(
                "Sale price must be a positive amount in whole cents", field="price", value=price, entity_id=product_id
            )
        return unit_price

    @staticmethod
    def _validate_quantity(quantity: Any, product_id: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(
                "Quantity must be a positive integer", field="quantity", value=quantity, entity_id=product_id
            )

    def _load_product(self, product_id: int) -> Product:
        product = self.product_repo.get_product(product_id)
        if product is None:
            raise ValidationError(f"Product {product_id} does not exist", field="product_id", entity_id=product_id)
        return product

    @staticmethod
    def _check_stock(product: Product, size: str, quantity: int) -> SizeStock:
        size_entry = product.find_size(size)
        if size_entry is None:
            raise ValidationError(
                f"Product {product.id} has no size {size!r}", field="size", value=size, entity_id=product.id
            )
        if size_entry.stock <= 0:
            raise ValidationError(
                f"No stock left for size {size!r}", field="size", value=size, entity_id=product.id, context={"stock": 0}
            )
        if quantity > size_entry.stock:
            raise ValidationError(
                f"Only {size_entry.stock} units left for size {size!r}",
                field="quantity",
                value=quantity,
                entity_id=product.id,
                context={"stock": size_entry.stock},
            )
        return size_entry

    def _write_sale(self, product: Product, size_entry: SizeStock, unit_price: Decimal, quantity: int) -> SaleReceiptDTO:
        # A failure here leaves nothing behind and propagates unchanged
        sale = self.sale_repo.insert_sale(
            Sale(total_amount=unit_price * quantity, status=SaleStatus.COMPLETED, created_at=utc_now())
        )
        completed_steps = ["sale"]

        try:
            item = self.sale_repo.insert_sale_item(
                SaleItem(
                    sale_id=sale.id,
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=unit_price,
                    size=size_entry.size,
                )
            )
            completed_steps.append("sale_item")
            swapped = self.product_repo.update_sizes_if_version(
                product.id, product.sizes_after_sale(size_entry.size, quantity), product.version
            )
        except DatabaseError as e:
            logger.error(f"Sale {sale.id} interrupted after steps {completed_steps}: {e}")
            compensated = self._compensate(sale.id)
            raise PartialWriteError(
                sale_id=sale.id,
                product_id=product.id,
                size=size_entry.size,
                completed_steps=completed_steps,
                compensated=compensated,
                original_exception=e,
            ) from e

        if not swapped:
            if not self._compensate(sale.id):
                raise PartialWriteError(
                    sale_id=sale.id,
                    product_id=product.id,
                    size=size_entry.size,
                    completed_steps=completed_steps,
                    compensated=False,
                )
            raise _StockRaceLost()

        return SaleReceiptDTO(
            sale=replace(sale, items=(item,)),
            item=item,
            product_id=product.id,
            size=size_entry.size,
            remaining_stock=size_entry.stock - quantity,
        )

    def _compensate(self, sale_id: int) -> bool:
        """Undoes the ledger side of an unfinished sale. Returns False if the store refused."""
        try:
            self.sale_repo.delete_sale_items(sale_id)
            self.sale_repo.mark_sale_failed(sale_id)
        except DatabaseError as e:
            logger.critical(f"Could not compensate sale {sale_id}, ledger and stock disagree: {e}")
            return False
        logger.info(f"Sale {sale_id} compensated and marked {SaleStatus.FAILED.value}")
        return True
