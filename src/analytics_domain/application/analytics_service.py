# src/analytics_domain/application/analytics_service.py
"""Application service for dashboard and analytics figures."""

import logging
from decimal import Decimal

from src.analytics_domain.domain.services.metrics import (
    compute_average_ticket,
    compute_dashboard_stats,
    compute_sales_trend,
    compute_top_products,
    latest_sales,
)
from src.catalog_domain.domain.entities.product import Product
from src.catalog_domain.domain.repositories.product_repository import IProductRepository
from src.common.config.settings import settings
from src.common.dtos.analytics_dtos import (
    DailySalesDTO,
    DashboardReportDTO,
    DashboardStatsDTO,
    TopProductDTO,
)
from src.sales_domain.domain.entities.sale import Sale
from src.sales_domain.domain.repositories.sale_repository import ISaleRepository

logger = logging.getLogger(__name__)


class AnalyticsApplicationService:
    """
    Reads a fresh snapshot from the store on every call; nothing is cached.

    Sales and products are fetched by separate queries, so a sale recorded in
    between may show up in one and not yet in the other. Store errors propagate
    and are never reported as empty or zero figures.
    """

    def __init__(
        self,
        product_repo: IProductRepository,
        sale_repo: ISaleRepository,
        tz_name: str | None = None,
        unknown_label: str | None = None,
    ) -> None:
        self.product_repo = product_repo
        self.sale_repo = sale_repo
        self.tz_name = tz_name or settings.LOCAL_TIMEZONE
        self.unknown_label = unknown_label or settings.UNKNOWN_PRODUCT_LABEL

    def _snapshot(self) -> tuple[list[Sale], list[Product]]:
        sales = self.sale_repo.list_sales()
        products = self.product_repo.list_products()
        logger.debug(f"Analytics snapshot: {len(sales)} sales, {len(products)} products")
        return sales, products

    def get_dashboard_stats(self) -> DashboardStatsDTO:
        sales, products = self._snapshot()
        return compute_dashboard_stats(sales, products)

    def get_sales_trend(self, by_weekday: bool = False) -> list[DailySalesDTO]:
        return compute_sales_trend(self.sale_repo.list_sales(), self.tz_name, by_weekday=by_weekday)

    def get_top_products(self, limit: int | None = None) -> list[TopProductDTO]:
        sales, products = self._snapshot()
        return compute_top_products(
            sales, products, limit=settings.TOP_PRODUCTS_LIMIT if limit is None else limit, unknown_label=self.unknown_label
        )

    def get_average_ticket(self) -> Decimal:
        return compute_average_ticket(self.sale_repo.list_sales())

    def get_recent_sales(self, limit: int | None = None) -> list[Sale]:
        return self.sale_repo.list_recent_sales(limit=settings.RECENT_SALES_LIMIT if limit is None else limit)

    def get_dashboard_report(self) -> DashboardReportDTO:
        """Every dashboard figure, computed from a single snapshot."""
        sales, products = self._snapshot()
        report = DashboardReportDTO(
            stats=compute_dashboard_stats(sales, products),
            average_ticket=compute_average_ticket(sales),
            sales_trend=compute_sales_trend(sales, self.tz_name),
            top_products=compute_top_products(
                sales, products, limit=settings.TOP_PRODUCTS_LIMIT, unknown_label=self.unknown_label
            ),
            recent_sales=latest_sales(sales, settings.RECENT_SALES_LIMIT),
        )
        logger.info(
            f"Dashboard: income {report.stats.total_income}, expenses {report.stats.total_expenses}, "
            f"profit {report.stats.net_profit}"
        )
        return report
