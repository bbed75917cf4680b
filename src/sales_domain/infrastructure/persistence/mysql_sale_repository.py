# src/sales_domain/infrastructure/persistence/mysql_sale_repository.py
"""MySQL implementation of the Sale ledger repository."""

import logging
from dataclasses import replace

from mysql.connector import Error

from src.common.persistence.mysql_base import MySQLRepositoryBase
from src.common.utils.date_utils import ensure_utc, format_datetime_for_db
from src.sales_domain.domain.entities.sale import Sale, SaleItem, SaleStatus
from src.sales_domain.domain.repositories.sale_repository import ISaleRepository

logger = logging.getLogger(__name__)

_SALE_WITH_ITEMS_QUERY = """
SELECT s.id AS sale_id, s.total_amount, s.status, s.created_at,
       i.id AS item_id, i.product_id, i.quantity, i.unit_price, i.size
FROM sales s
LEFT JOIN sale_items i ON i.sale_id = s.id
WHERE {where}
ORDER BY s.created_at {direction}, s.id {direction}, i.id ASC
"""


class MySQLSaleRepository(MySQLRepositoryBase, ISaleRepository):
    """MySQL implementation of the Sale Repository."""

    def create_tables(self) -> None:
        """Creates the sales and sale_items tables if they do not exist."""
        create_sales_table_query = """
        CREATE TABLE IF NOT EXISTS sales (
            id BIGINT UNSIGNED PRIMARY KEY AUTO_INCREMENT,
            total_amount DECIMAL(12, 2) NOT NULL,
            status VARCHAR(20) NOT NULL DEFAULT 'completed',
            created_at DATETIME(6) NOT NULL,
            INDEX idx_status_created (status, created_at)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """
        # product_id is deliberately not a foreign key: products can be deleted, history stays
        create_sale_items_table_query = """
        CREATE TABLE IF NOT EXISTS sale_items (
            id BIGINT UNSIGNED PRIMARY KEY AUTO_INCREMENT,
            sale_id BIGINT UNSIGNED NOT NULL,
            product_id BIGINT UNSIGNED,
            quantity INT UNSIGNED NOT NULL,
            unit_price DECIMAL(12, 2) NOT NULL,
            size VARCHAR(50) NOT NULL,
            INDEX idx_sale_id (sale_id),
            INDEX idx_product_id (product_id),
            CONSTRAINT fk_sale_items_sale FOREIGN KEY (sale_id) REFERENCES sales (id)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(create_sales_table_query)
            cursor.execute(create_sale_items_table_query)
            conn.commit()
            logger.info("Sales and sale_items tables checked/created.")
        except Error as e:
            self._rollback_quietly(conn)
            raise self._database_error("Error creating sales tables", e)
        finally:
            cursor.close()

    def insert_sale(self, sale: Sale) -> Sale:
        """Appends a sale header."""
        conn = self._get_connection()
        cursor = conn.cursor()

        insert_query = """
        INSERT INTO sales (total_amount, status, created_at)
        VALUES (%s, %s, %s)
        """
        params = (sale.total_amount, sale.status.value, format_datetime_for_db(sale.created_at))

        try:
            cursor.execute(insert_query, params)
            sale_id = cursor.lastrowid
            conn.commit()
        except Error as e:
            self._rollback_quietly(conn)
            raise self._database_error(
                "Error inserting sale", e, {"total_amount": str(sale.total_amount), "status": sale.status.value}
            )
        finally:
            cursor.close()
        return replace(sale, id=sale_id)

    def insert_sale_item(self, item: SaleItem) -> SaleItem:
        """Appends a sale line."""
        conn = self._get_connection()
        cursor = conn.cursor()

        insert_query = """
        INSERT INTO sale_items (sale_id, product_id, quantity, unit_price, size)
        VALUES (%s, %s, %s, %s, %s)
        """
        params = (item.sale_id, item.product_id, item.quantity, item.unit_price, item.size)

        try:
            cursor.execute(insert_query, params)
            item_id = cursor.lastrowid
            conn.commit()
        except Error as e:
            self._rollback_quietly(conn)
            raise self._database_error(
                f"Error inserting item of sale {item.sale_id}",
                e,
                {"sale_id": item.sale_id, "product_id": item.product_id, "size": item.size},
            )
        finally:
            cursor.close()
        return replace(item, id=item_id)

    def delete_sale_items(self, sale_id: int) -> None:
        """Removes the lines of a sale that is being compensated."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute("DELETE FROM sale_items WHERE sale_id = %s", (sale_id,))
            conn.commit()
        except Error as e:
            self._rollback_quietly(conn)
            raise self._database_error(f"Error deleting items of sale {sale_id}", e, {"sale_id": sale_id})
        finally:
            cursor.close()

    def mark_sale_failed(self, sale_id: int) -> None:
        """Flags a compensated sale so it no longer counts as revenue."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute("UPDATE sales SET status = %s WHERE id = %s", (SaleStatus.FAILED.value, sale_id))
            conn.commit()
        except Error as e:
            self._rollback_quietly(conn)
            raise self._database_error(f"Error marking sale {sale_id} as failed", e, {"sale_id": sale_id})
        finally:
            cursor.close()

    @staticmethod
    def _rows_to_sales(rows: list[dict]) -> list[Sale]:
        """Folds joined sale/item rows into sales, keeping the row order."""
        headers: dict[int, dict] = {}
        items: dict[int, list[SaleItem]] = {}
        for row in rows:
            sale_id = row["sale_id"]
            if sale_id not in headers:
                headers[sale_id] = row
                items[sale_id] = []
            if row["item_id"] is not None:
                items[sale_id].append(
                    SaleItem(
                        id=row["item_id"],
                        sale_id=sale_id,
                        product_id=row["product_id"],
                        quantity=row["quantity"],
                        unit_price=row["unit_price"],
                        size=row["size"],
                    )
                )
        return [
            Sale(
                id=sale_id,
                total_amount=row["total_amount"],
                status=SaleStatus(row["status"]),
                created_at=ensure_utc(row["created_at"]),
                items=tuple(items[sale_id]),
            )
            for sale_id, row in headers.items()
        ]

    def list_sales(self, status: SaleStatus = SaleStatus.COMPLETED) -> list[Sale]:
        """Retrieves all sales with the given status, oldest first."""
        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(_SALE_WITH_ITEMS_QUERY.format(where="s.status = %s", direction="ASC"), (status.value,))
            rows = cursor.fetchall()
            conn.commit()
        except Error as e:
            raise self._database_error("Error fetching sales", e, {"status": status.value})
        finally:
            cursor.close()
        return self._rows_to_sales(rows)

    def list_recent_sales(self, limit: int = 5) -> list[Sale]:
        """Retrieves the latest completed sales, newest first."""
        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        # LIMIT applies to sales, not to joined item rows
        where = (
            "s.id IN (SELECT id FROM (SELECT id FROM sales WHERE status = %s "
            "ORDER BY created_at DESC, id DESC LIMIT %s) AS latest)"
        )
        try:
            cursor.execute(
                _SALE_WITH_ITEMS_QUERY.format(where=where, direction="DESC"), (SaleStatus.COMPLETED.value, limit)
            )
            rows = cursor.fetchall()
            conn.commit()
        except Error as e:
            raise self._database_error("Error fetching recent sales", e, {"limit": limit})
        finally:
            cursor.close()
        return self._rows_to_sales(rows)
