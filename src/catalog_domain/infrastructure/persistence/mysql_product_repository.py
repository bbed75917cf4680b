# src/catalog_domain/infrastructure/persistence/mysql_product_repository.py
"""MySQL implementation of the Product repository."""

import logging
from typing import Optional

from mysql.connector import Error

from src.catalog_domain.domain.entities.product import Product
from src.catalog_domain.domain.entities.size_stock import SizeStock, sizes_from_json, sizes_to_json
from src.catalog_domain.domain.repositories.product_repository import IProductRepository
from src.common.exceptions.custom_exceptions import DatabaseError
from src.common.persistence.mysql_base import MySQLRepositoryBase

logger = logging.getLogger(__name__)

_PRODUCT_COLUMNS = "id, name, sku, price, cost, sizes, image_url, version, created_at"

_ORDER_CLAUSES = {
    "name": "ORDER BY name ASC, id ASC",
    "created_at": "ORDER BY created_at DESC, id DESC",
}


class MySQLProductRepository(MySQLRepositoryBase, IProductRepository):
    """MySQL implementation of the Product Repository."""

    def create_tables(self) -> None:
        """Creates the products table if it does not exist."""
        create_products_table_query = """
        CREATE TABLE IF NOT EXISTS products (
            id BIGINT UNSIGNED PRIMARY KEY AUTO_INCREMENT,
            name VARCHAR(255) NOT NULL,
            sku VARCHAR(100),
            price DECIMAL(12, 2) NOT NULL DEFAULT 0,
            cost DECIMAL(12, 2) NOT NULL DEFAULT 0,
            sizes JSON NOT NULL,
            image_url VARCHAR(1024),
            version INT UNSIGNED NOT NULL DEFAULT 1,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            INDEX idx_name (name),
            INDEX idx_sku (sku)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
        """
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute(create_products_table_query)
            conn.commit()
            logger.info("Products table checked/created.")
        except Error as e:
            self._rollback_quietly(conn)
            raise self._database_error("Error creating products table", e)
        finally:
            cursor.close()

    @staticmethod
    def _row_to_product(row: dict) -> Product:
        try:
            return Product(
                id=row["id"],
                name=row["name"],
                sku=row["sku"],
                price=row["price"],
                cost=row["cost"],
                sizes=sizes_from_json(row["sizes"]),
                image_url=row["image_url"],
                version=row["version"],
                created_at=row["created_at"],
            )
        except (ValueError, TypeError, AttributeError) as e:
            # Rows edited outside the application may break the entity invariants
            raise DatabaseError(
                f"Product {row.get('id')} has malformed stored data",
                original_exception=e,
                context={"product_id": row.get("id")},
            ) from e

    def list_products(self, order_by: str = "name") -> list[Product]:
        """Retrieves every product in the catalog."""
        if order_by not in _ORDER_CLAUSES:
            raise ValueError(f"Unsupported product ordering: {order_by}")

        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        try:
            cursor.execute(f"SELECT {_PRODUCT_COLUMNS} FROM products {_ORDER_CLAUSES[order_by]}")
            rows = cursor.fetchall()
            # Plain SELECTs still open a transaction; end it so the next read sees fresh data
            conn.commit()
            return [self._row_to_product(row) for row in rows]
        except Error as e:
            raise self._database_error("Error fetching products", e)
        finally:
            cursor.close()

    def get_product(self, product_id: int) -> Optional[Product]:
        """Retrieves a product by id."""
        conn = self._get_connection()
        cursor = conn.cursor(dictionary=True)
        product = None
        try:
            cursor.execute(f"SELECT {_PRODUCT_COLUMNS} FROM products WHERE id = %s LIMIT 1", (product_id,))
            row = cursor.fetchone()
            conn.commit()
            if row:
                product = self._row_to_product(row)
        except Error as e:
            raise self._database_error(f"Error fetching product {product_id}", e, {"product_id": product_id})
        finally:
            cursor.close()
        return product

    def create_product(self, product: Product) -> Product:
        """Inserts a new product. The store assigns id, version and created_at."""
        conn = self._get_connection()
        cursor = conn.cursor()

        insert_query = """
        INSERT INTO products (name, sku, price, cost, sizes, image_url, version)
        VALUES (%s, %s, %s, %s, %s, %s, 1)
        """
        params = (
            product.name,
            product.sku,
            product.price,
            product.cost,
            product.sizes_to_json(),
            product.image_url,
        )

        try:
            cursor.execute(insert_query, params)
            new_id = cursor.lastrowid
            conn.commit()
            logger.info(f"Created product {new_id} ({product.name})")
        except Error as e:
            self._rollback_quietly(conn)
            raise self._database_error(f"Error creating product {product.name!r}", e, {"name": product.name})
        finally:
            cursor.close()

        created = self.get_product(new_id)
        if created is None:
            raise DatabaseError(f"Product {new_id} vanished right after creation", context={"product_id": new_id})
        return created

    def update_product(self, product: Product, include_sizes: bool = True) -> Optional[Product]:
        """Overwrites the editable fields of a product and bumps its version."""
        conn = self._get_connection()
        cursor = conn.cursor()

        params: tuple = (product.name, product.sku, product.price, product.cost, product.image_url)
        if include_sizes:
            # Replacing stock must not undo a sale that committed after `product` was read
            update_query = """
            UPDATE products
            SET name = %s, sku = %s, price = %s, cost = %s, image_url = %s, sizes = %s, version = version + 1
            WHERE id = %s AND version = %s
            """
            params += (product.sizes_to_json(), product.id, product.version)
        else:
            update_query = """
            UPDATE products
            SET name = %s, sku = %s, price = %s, cost = %s, image_url = %s, version = version + 1
            WHERE id = %s
            """
            params += (product.id,)

        try:
            cursor.execute(update_query, params)
            updated_rows = cursor.rowcount
            conn.commit()
        except Error as e:
            self._rollback_quietly(conn)
            raise self._database_error(f"Error updating product {product.id}", e, {"product_id": product.id})
        finally:
            cursor.close()

        if updated_rows == 0:
            return None
        return self.get_product(product.id)

    def delete_product(self, product_id: int) -> bool:
        """Deletes a product. Sale items keep their product_id."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute("DELETE FROM products WHERE id = %s", (product_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
            return deleted
        except Error as e:
            self._rollback_quietly(conn)
            raise self._database_error(f"Error deleting product {product_id}", e, {"product_id": product_id})
        finally:
            cursor.close()

    def update_sizes_if_version(self, product_id: int, sizes: list[SizeStock], expected_version: int) -> bool:
        """Compare-and-swap on the product version; the row is untouched if someone else wrote first."""
        conn = self._get_connection()
        cursor = conn.cursor()

        update_query = """
        UPDATE products
        SET sizes = %s, version = version + 1
        WHERE id = %s AND version = %s
        """
        params = (sizes_to_json(sizes), product_id, expected_version)

        try:
            cursor.execute(update_query, params)
            swapped = cursor.rowcount == 1
            conn.commit()
        except Error as e:
            self._rollback_quietly(conn)
            raise self._database_error(
                f"Error updating stock of product {product_id}",
                e,
                {"product_id": product_id, "expected_version": expected_version},
            )
        finally:
            cursor.close()

        if not swapped:
            logger.debug(f"Stock update of product {product_id} lost the race (expected version {expected_version})")
        return swapped
