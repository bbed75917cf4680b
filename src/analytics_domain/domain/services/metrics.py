# src/analytics_domain/domain/services/metrics.py
"""
Business metrics derived from a snapshot of the sale ledger and the catalog.

Every function here is pure: no store access, no clock, no hidden state. Sums are
Decimal and accumulated in input order, so the same snapshot always gives the
same figures.

Sale items reference products by id only. A product deleted since the sale
resolves to a zero cost and to the unknown-product label; it never fails the
aggregation.
"""

from collections import OrderedDict
from decimal import Decimal
from typing import Iterable

from src.catalog_domain.domain.entities.product import Product
from src.common.dtos.analytics_dtos import DailySalesDTO, DashboardStatsDTO, TopProductDTO
from src.common.utils.date_utils import ensure_utc, to_local_date
from src.common.utils.money_utils import ZERO
from src.sales_domain.domain.entities.sale import Sale

# Fixed labels; locale-dependent names would make the trend differ between machines
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _index_products(products: Iterable[Product]) -> dict:
    return {p.id: p for p in products}


def compute_dashboard_stats(sales: list[Sale], products: list[Product]) -> DashboardStatsDTO:
    """Income, cost of goods sold, profit and inventory figures."""
    products_by_id = _index_products(products)

    total_income = ZERO
    total_expenses = ZERO
    total_items_sold = 0
    for sale in sales:
        total_income += sale.total_amount
        total_items_sold += sale.items_quantity
        for item in sale.items:
            product = products_by_id.get(item.product_id)
            cost = product.cost if product is not None else ZERO
            total_expenses += cost * item.quantity

    inventory_value = ZERO
    total_stock_units = 0
    for product in products:
        units = product.total_stock
        inventory_value += product.price * units
        total_stock_units += units

    return DashboardStatsDTO(
        total_income=total_income,
        total_expenses=total_expenses,
        net_profit=total_income - total_expenses,
        inventory_value=inventory_value,
        total_stock_units=total_stock_units,
        product_count=len(products),
        total_items_sold=total_items_sold,
    )


def compute_sales_trend(sales: list[Sale], tz_name: str, by_weekday: bool = False) -> list[DailySalesDTO]:
    """
    Sales totals per calendar day of the operator's timezone, oldest day first.
    Only days that have sales appear.

    With `by_weekday=True` all Mondays fall into one bucket, all Tuesdays into
    another and so on, ordered Monday to Sunday.
    """
    totals: dict = {}
    counts: dict = {}
    for sale in sales:
        day = to_local_date(sale.created_at, tz_name)
        key = day.weekday() if by_weekday else day
        totals[key] = totals.get(key, ZERO) + sale.total_amount
        counts[key] = counts.get(key, 0) + 1

    trend = []
    for key in sorted(totals):
        if by_weekday:
            trend.append(DailySalesDTO(label=WEEKDAY_LABELS[key], total=totals[key], sale_count=counts[key]))
        else:
            trend.append(DailySalesDTO(label=key.isoformat(), total=totals[key], sale_count=counts[key], day=key))
    return trend


def compute_top_products(
    sales: list[Sale],
    products: list[Product],
    limit: int = 5,
    unknown_label: str = "Unknown",
) -> list[TopProductDTO]:
    """
    Best sellers by units sold, keyed by product name.

    Ties keep the order in which the products were first seen in `sales`.
    """
    products_by_id = _index_products(products)
    units: OrderedDict[str, int] = OrderedDict()
    for sale in sales:
        for item in sale.items:
            product = products_by_id.get(item.product_id)
            name = product.name if product is not None else unknown_label
            units[name] = units.get(name, 0) + item.quantity

    # sorted() is stable
    ranked = sorted(units.items(), key=lambda pair: pair[1], reverse=True)
    return [TopProductDTO(name=name, quantity=quantity) for name, quantity in ranked[: max(limit, 0)]]


def compute_average_ticket(sales: list[Sale]) -> Decimal:
    """Mean sale amount; zero when there are no sales."""
    if not sales:
        return ZERO
    total = ZERO
    for sale in sales:
        total += sale.total_amount
    return total / Decimal(len(sales))


def latest_sales(sales: list[Sale], limit: int) -> list[Sale]:
    """The `limit` most recent sales of a snapshot, newest first."""
    ordered = sorted(sales, key=lambda s: ensure_utc(s.created_at), reverse=True)
    return ordered[: max(limit, 0)]
