"""Main application entry point for the boutique dashboard report."""

import logging
import time

import schedule
from rich.console import Console
from rich.table import Table

from src.analytics_domain.application.analytics_service import AnalyticsApplicationService
from src.catalog_domain.application.catalog_service import CatalogApplicationService
from src.catalog_domain.infrastructure.persistence.mysql_product_repository import MySQLProductRepository
from src.common.config.settings import settings
from src.common.dtos.analytics_dtos import DashboardReportDTO
from src.common.exceptions.custom_exceptions import ApplicationError, DatabaseError
from src.common.logger_config import setup_logging
from src.common.utils.date_utils import to_local_datetime
from src.sales_domain.application.sale_recorder_service import SaleRecorderService
from src.sales_domain.infrastructure.persistence.mysql_sale_repository import MySQLSaleRepository

logger = logging.getLogger(__name__)

console = Console()


def setup_dependencies() -> tuple[CatalogApplicationService, SaleRecorderService, AnalyticsApplicationService]:
    """Initializes and wires up application dependencies."""
    product_repository = MySQLProductRepository()
    sale_repository = MySQLSaleRepository()

    catalog_service = CatalogApplicationService(product_repo=product_repository)
    sale_recorder = SaleRecorderService(product_repo=product_repository, sale_repo=sale_repository)
    analytics_service = AnalyticsApplicationService(product_repo=product_repository, sale_repo=sale_repository)
    return catalog_service, sale_recorder, analytics_service


def check_store_status() -> bool:
    """Probes the store the way the dashboard header shows it: connected or connection error."""
    product_repo = MySQLProductRepository()
    try:
        product_repo.ping()
        logger.info(f"Store connected ({settings.DB_HOST}/{settings.DB_DATABASE})")
        return True
    except DatabaseError as e:
        logger.error(f"Store connection error: {e}")
        return False
    finally:
        del product_repo


def create_db_tables() -> None:
    """Creates the products, sales and sale_items tables (idempotent)."""
    product_repo = MySQLProductRepository()
    sale_repo = MySQLSaleRepository()
    try:
        product_repo.create_tables()
        sale_repo.create_tables()
    except DatabaseError as e:
        logger.error(f"Error creating database tables: {e}")
        raise
    finally:
        # Ensure connections are closed, there is no connection pool
        del product_repo
        del sale_repo


def render_dashboard(report: DashboardReportDTO) -> None:
    """Prints the dashboard figures."""
    stats = report.stats

    summary = Table(title="Business summary", show_header=False)
    summary.add_row("Income", f"{stats.total_income:.2f}")
    summary.add_row("Expenses", f"{stats.total_expenses:.2f}")
    summary.add_row("Net profit", f"{stats.net_profit:.2f}")
    summary.add_row("Average ticket", f"{report.average_ticket:.2f}")
    summary.add_row("Items sold", str(stats.total_items_sold))
    summary.add_row("Inventory value", f"{stats.inventory_value:.2f}")
    summary.add_row("Units in stock", str(stats.total_stock_units))
    summary.add_row("Products", str(stats.product_count))
    console.print(summary)

    trend = Table(title="Sales per day")
    trend.add_column("Day")
    trend.add_column("Sales", justify="right")
    trend.add_column("Total", justify="right")
    for bucket in report.sales_trend:
        trend.add_row(bucket.label, str(bucket.sale_count), f"{bucket.total:.2f}")
    console.print(trend)

    top = Table(title="Top products")
    top.add_column("Product")
    top.add_column("Units", justify="right")
    for entry in report.top_products:
        top.add_row(entry.name, str(entry.quantity))
    console.print(top)

    recent = Table(title="Recent sales")
    recent.add_column("Sale")
    recent.add_column("Time")
    recent.add_column("Amount", justify="right")
    for sale in report.recent_sales:
        local_time = to_local_datetime(sale.created_at, settings.LOCAL_TIMEZONE)
        recent.add_row(str(sale.id), local_time.strftime("%Y-%m-%d %H:%M"), f"+{sale.total_amount:.2f}")
    console.print(recent)


def run_dashboard_report() -> None:
    """Reads the store and prints the dashboard. Safe to call repeatedly."""
    _, _, analytics_service = setup_dependencies()
    try:
        render_dashboard(analytics_service.get_dashboard_report())
    except ApplicationError as e:
        logger.error(f"Could not build the dashboard: {e}")


if __name__ == "__main__":
    setup_logging()
    logger.info("Boutique POS dashboard started.")

    if not check_store_status():
        raise SystemExit(1)

    create_db_tables()
    run_dashboard_report()

    # The dashboard is pull-based: a recorded sale only shows up on the next read
    if settings.REPORT_INTERVAL_MINUTES > 0:
        logger.info(f"Refreshing the dashboard every {settings.REPORT_INTERVAL_MINUTES} minutes.")
        schedule.every(settings.REPORT_INTERVAL_MINUTES).minutes.do(run_dashboard_report)
        while True:
            schedule.run_pending()
            time.sleep(1)  # Wait one second before checking again
