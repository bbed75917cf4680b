# tests/test_sales_domain/test_infrastructure/test_mysql_sale_repository.py

from datetime import datetime
from decimal import Decimal
from unittest.mock import Mock

import pytest
import pytz
from mysql.connector import Error, errors

from src.common.exceptions.custom_exceptions import DatabaseError, StoreUnavailableError
from src.sales_domain.domain.entities.sale import Sale, SaleItem, SaleStatus
from src.sales_domain.infrastructure.persistence.mysql_sale_repository import MySQLSaleRepository


@pytest.fixture
def mock_connection(mocker) -> Mock:
    return mocker.patch("mysql.connector.connect")


@pytest.fixture
def mock_cursor(mock_connection) -> Mock:
    cursor = Mock()
    mock_connection.return_value.cursor.return_value = cursor
    return cursor


@pytest.fixture
def repo() -> MySQLSaleRepository:
    repo = MySQLSaleRepository()
    repo._connection = None
    return repo


def _joined_row(sale_id, item_id=None, product_id=None, quantity=None, unit_price=None, size=None, **sale) -> dict:
    return {
        "sale_id": sale_id,
        "total_amount": sale.get("total_amount", Decimal("30.00")),
        "status": sale.get("status", "completed"),
        "created_at": sale.get("created_at", datetime(2026, 3, 2, 10, 0)),
        "item_id": item_id,
        "product_id": product_id,
        "quantity": quantity,
        "unit_price": unit_price,
        "size": size,
    }


def test_mysql_sale_repository_create_tables_success(repo, mock_connection, mock_cursor) -> None:
    """
    Tests that create_tables creates both ledger tables in one go.
    """
    repo.create_tables()

    mock_connection.assert_called_once()
    assert mock_cursor.execute.call_count == 2
    assert "CREATE TABLE IF NOT EXISTS sales" in mock_cursor.execute.call_args_list[0][0][0]
    assert "CREATE TABLE IF NOT EXISTS sale_items" in mock_cursor.execute.call_args_list[1][0][0]
    mock_connection.return_value.commit.assert_called_once()
    mock_cursor.close.assert_called_once()


def test_mysql_sale_repository_insert_sale(repo, mock_connection, mock_cursor) -> None:
    """
    Tests that insert_sale writes a UTC timestamp and returns the sale with its new id.
    """
    mock_cursor.lastrowid = 17
    sale = Sale(total_amount=Decimal("29.99"), created_at=datetime(2026, 3, 2, 10, 0, tzinfo=pytz.utc))

    stored = repo.insert_sale(sale)

    assert stored.id == 17
    assert stored.total_amount == Decimal("29.99")
    query, params = mock_cursor.execute.call_args[0]
    assert query.strip().startswith("INSERT INTO sales")
    assert params == (Decimal("29.99"), "completed", "2026-03-02 10:00:00")
    mock_connection.return_value.commit.assert_called_once()
    mock_cursor.close.assert_called_once()


def test_mysql_sale_repository_insert_sale_item(repo, mock_connection, mock_cursor) -> None:
    mock_cursor.lastrowid = 5
    item = SaleItem(sale_id=17, product_id=1, quantity=2, unit_price=Decimal("30.00"), size="M")

    stored = repo.insert_sale_item(item)

    assert stored.id == 5
    assert stored.sale_id == 17
    query, params = mock_cursor.execute.call_args[0]
    assert query.strip().startswith("INSERT INTO sale_items")
    assert params == (17, 1, 2, Decimal("30.00"), "M")
    mock_connection.return_value.commit.assert_called_once()


def test_mysql_sale_repository_insert_sale_error_rolls_back(repo, mock_connection, mock_cursor) -> None:
    """
    Tests that a failed INSERT is rolled back and raised as DatabaseError.
    """
    mock_cursor.execute.side_effect = Error(msg="Duplicate entry", errno=1062)
    sale = Sale(total_amount=Decimal("10.00"), created_at=datetime(2026, 3, 2, 10, 0, tzinfo=pytz.utc))

    with pytest.raises(DatabaseError, match="Error inserting sale") as exc_info:
        repo.insert_sale(sale)

    assert not isinstance(exc_info.value, StoreUnavailableError)
    mock_connection.return_value.rollback.assert_called_once()
    mock_connection.return_value.commit.assert_not_called()
    mock_cursor.close.assert_called_once()


def test_mysql_sale_repository_lost_connection_is_store_unavailable(repo, mock_connection, mock_cursor) -> None:
    mock_cursor.execute.side_effect = errors.OperationalError(msg="Lost connection to MySQL server", errno=2013)
    item = SaleItem(sale_id=17, product_id=1, quantity=1, unit_price=Decimal("30.00"), size="M")

    with pytest.raises(StoreUnavailableError) as exc_info:
        repo.insert_sale_item(item)

    assert exc_info.value.context["sale_id"] == 17


def test_mysql_sale_repository_lock_wait_timeout_is_store_unavailable(repo, mock_connection, mock_cursor) -> None:
    mock_cursor.execute.side_effect = Error(msg="Lock wait timeout exceeded", errno=1205)

    with pytest.raises(StoreUnavailableError):
        repo.mark_sale_failed(17)


def test_mysql_sale_repository_compensation_statements(repo, mock_connection, mock_cursor) -> None:
    """
    Tests that compensation deletes the items of the sale and flags the sale as failed.
    """
    repo.delete_sale_items(17)
    repo.mark_sale_failed(17)

    delete_call, update_call = mock_cursor.execute.call_args_list
    assert delete_call[0] == ("DELETE FROM sale_items WHERE sale_id = %s", (17,))
    assert update_call[0] == ("UPDATE sales SET status = %s WHERE id = %s", ("failed", 17))
    assert mock_connection.return_value.commit.call_count == 2
    # One connection for the lifetime of the repository
    mock_connection.assert_called_once()


def test_mysql_sale_repository_list_sales_folds_items(repo, mock_connection, mock_cursor) -> None:
    """
    Tests that joined rows become one Sale per header with its items, in row order,
    and that sales without items (LEFT JOIN misses) are kept.
    """
    mock_cursor.fetchall.return_value = [
        _joined_row(1, 11, 1, 1, Decimal("30.00"), "M", total_amount=Decimal("60.00")),
        _joined_row(1, 12, 2, 1, Decimal("30.00"), "S", total_amount=Decimal("60.00")),
        _joined_row(2, created_at=datetime(2026, 3, 3, 9, 0)),
    ]

    sales = repo.list_sales()

    query, params = mock_cursor.execute.call_args[0]
    assert "LEFT JOIN sale_items" in query
    assert "ORDER BY s.created_at ASC" in query
    assert params == ("completed",)
    mock_connection.return_value.cursor.assert_called_with(dictionary=True)
    mock_cursor.close.assert_called_once()

    assert [s.id for s in sales] == [1, 2]
    first, second = sales
    assert first.total_amount == Decimal("60.00")
    assert first.status == SaleStatus.COMPLETED
    assert [item.id for item in first.items] == [11, 12]
    assert first.items[1].size == "S"
    assert first.items_quantity == 2
    assert second.items == ()
    # MySQL DATETIME comes back naive and is stored as UTC
    assert second.created_at == datetime(2026, 3, 3, 9, 0, tzinfo=pytz.utc)


def test_mysql_sale_repository_list_sales_by_status(repo, mock_connection, mock_cursor) -> None:
    mock_cursor.fetchall.return_value = [_joined_row(3, status="failed")]

    sales = repo.list_sales(status=SaleStatus.FAILED)

    assert mock_cursor.execute.call_args[0][1] == ("failed",)
    assert sales[0].status == SaleStatus.FAILED


def test_mysql_sale_repository_list_recent_sales(repo, mock_connection, mock_cursor) -> None:
    mock_cursor.fetchall.return_value = [
        _joined_row(9, 90, 1, 1, Decimal("30.00"), "M", created_at=datetime(2026, 3, 4, 18, 0)),
        _joined_row(8, 80, 2, 1, Decimal("50.00"), "M", created_at=datetime(2026, 3, 4, 12, 0)),
    ]

    sales = repo.list_recent_sales(limit=2)

    query, params = mock_cursor.execute.call_args[0]
    assert "LIMIT %s" in query
    assert "ORDER BY s.created_at DESC" in query
    assert params == ("completed", 2)
    assert [s.id for s in sales] == [9, 8]


def test_mysql_sale_repository_list_sales_error(repo, mock_connection, mock_cursor) -> None:
    mock_cursor.execute.side_effect = Error(msg="Table 'sales' doesn't exist", errno=1146)

    with pytest.raises(DatabaseError, match="Error fetching sales"):
        repo.list_sales()

    mock_cursor.close.assert_called_once()


def test_mysql_sale_repository_connect_failure(mock_connection) -> None:
    """
    Tests that an unreachable server surfaces as StoreUnavailableError.
    """
    mock_connection.side_effect = errors.InterfaceError(msg="Can't connect to MySQL server", errno=2003)
    repo = MySQLSaleRepository()

    with pytest.raises(StoreUnavailableError, match="Failed to connect to MySQL"):
        repo.list_sales()
