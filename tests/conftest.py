# tests/conftest.py
import pytest
from unittest.mock import Mock
from datetime import datetime
from decimal import Decimal
import pytz

from src.analytics_domain.application.analytics_service import AnalyticsApplicationService
from src.catalog_domain.application.catalog_service import CatalogApplicationService
from src.catalog_domain.domain.entities.product import Product
from src.catalog_domain.domain.entities.size_stock import SizeStock
from src.catalog_domain.infrastructure.persistence.mysql_product_repository import MySQLProductRepository
from src.common.config.settings import settings
from src.sales_domain.application.sale_recorder_service import SaleRecorderService
from src.sales_domain.domain.entities.sale import Sale
from src.sales_domain.infrastructure.persistence.mysql_sale_repository import MySQLSaleRepository
from tests.fakes import InMemoryProductRepository, InMemorySaleRepository, make_sale


@pytest.fixture(autouse=True)
def mock_settings_for_tests(mocker) -> None:
    """Pins the settings that change computed figures, whatever the local .env says."""
    mocker.patch.object(settings, "LOCAL_TIMEZONE", "Europe/Madrid")
    mocker.patch.object(settings, "SALE_MAX_RETRIES", 3)
    mocker.patch.object(settings, "TOP_PRODUCTS_LIMIT", 5)
    mocker.patch.object(settings, "RECENT_SALES_LIMIT", 5)
    mocker.patch.object(settings, "UNKNOWN_PRODUCT_LABEL", "Unknown")


@pytest.fixture
def mock_product_repository() -> Mock:
    """Mock for MySQLProductRepository."""
    # We specify the actual class for a more accurate mock spec
    return Mock(spec=MySQLProductRepository)


@pytest.fixture
def mock_sale_repository() -> Mock:
    """Mock for MySQLSaleRepository."""
    return Mock(spec=MySQLSaleRepository)


@pytest.fixture
def catalog_service(mock_product_repository) -> CatalogApplicationService:
    """Instance of CatalogApplicationService with a mocked repository."""
    return CatalogApplicationService(product_repo=mock_product_repository)


@pytest.fixture
def sale_recorder(mock_product_repository, mock_sale_repository) -> SaleRecorderService:
    """Instance of SaleRecorderService with mocked repositories."""
    return SaleRecorderService(product_repo=mock_product_repository, sale_repo=mock_sale_repository)


@pytest.fixture
def analytics_service(mock_product_repository, mock_sale_repository) -> AnalyticsApplicationService:
    """Instance of AnalyticsApplicationService with mocked repositories."""
    return AnalyticsApplicationService(product_repo=mock_product_repository, sale_repo=mock_sale_repository)


@pytest.fixture
def in_memory_product_repository() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def in_memory_sale_repository() -> InMemorySaleRepository:
    return InMemorySaleRepository()


@pytest.fixture
def sample_product() -> Product:
    """A T-shirt with three units of size M, as stored."""
    return Product(
        id=1,
        name="Camiseta Lino",
        sku="CAM-001",
        price=Decimal("29.99"),
        cost=Decimal("12.00"),
        sizes=[SizeStock(size="S", stock=0), SizeStock(size="M", stock=3)],
        version=4,
    )


@pytest.fixture
def sample_products() -> list[Product]:
    return [
        Product(
            id=1,
            name="Camiseta Lino",
            price=Decimal("30.00"),
            cost=Decimal("12.00"),
            sizes=[SizeStock(size="S", stock=2), SizeStock(size="M", stock=3)],
            version=1,
        ),
        Product(
            id=2,
            name="Vestido Azul",
            price=Decimal("50.00"),
            cost=Decimal("20.00"),
            sizes=[SizeStock(size="M", stock=1)],
            version=1,
        ),
    ]


@pytest.fixture
def sample_sales() -> list[Sale]:
    """Four completed sales over two days; product 99 no longer exists in the catalog."""
    return [
        make_sale(1, "30.00", datetime(2026, 3, 2, 10, 0, tzinfo=pytz.utc), (1, 1, "30.00", "M")),
        make_sale(2, "50.00", datetime(2026, 3, 2, 17, 30, tzinfo=pytz.utc), (2, 1, "50.00", "M")),
        make_sale(3, "45.00", datetime(2026, 3, 3, 9, 15, tzinfo=pytz.utc), (99, 1, "45.00", "L")),
        make_sale(4, "60.00", datetime(2026, 3, 3, 12, 0, tzinfo=pytz.utc), (1, 2, "30.00", "S")),
    ]
