"""Data Transfer Objects for dashboard and analytics figures."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from src.sales_domain.domain.entities.sale import Sale


@dataclass(frozen=True)
class DashboardStatsDTO:
    total_income: Decimal
    total_expenses: Decimal
    net_profit: Decimal  # May be negative
    inventory_value: Decimal
    total_stock_units: int
    product_count: int
    total_items_sold: int


@dataclass(frozen=True)
class DailySalesDTO:
    """Sales total for one bucket of the trend chart."""

    label: str
    total: Decimal
    sale_count: int
    day: date | None = None  # None when bucketing by weekday


@dataclass(frozen=True)
class TopProductDTO:
    name: str
    quantity: int


@dataclass
class DashboardReportDTO:
    """Every dashboard figure computed from one snapshot of the store."""

    stats: DashboardStatsDTO
    average_ticket: Decimal
    sales_trend: list[DailySalesDTO] = field(default_factory=list)
    top_products: list[TopProductDTO] = field(default_factory=list)
    recent_sales: list[Sale] = field(default_factory=list)
