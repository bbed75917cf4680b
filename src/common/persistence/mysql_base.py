# src/common/persistence/mysql_base.py
"""Connection handling shared by the MySQL repositories."""

import logging
from typing import Any

import mysql.connector
from mysql.connector import Error, errors

from src.common.config.settings import settings
from src.common.exceptions.custom_exceptions import DatabaseError, StoreUnavailableError

logger = logging.getLogger(__name__)

# Server gone away, lost connection, lock wait timeout, statement timeout
_UNAVAILABLE_ERRNOS = {2003, 2006, 2013, 1205, 3024}


class MySQLRepositoryBase:
    """Lazily opens one connection per repository and maps driver errors to application errors."""

    def __init__(self) -> None:
        """Initializes the repository."""
        self._connection = None

    def _get_connection(self):
        """Establishes or returns an active MySQL database connection."""
        if not self._connection or not self._connection.is_connected():
            lock_wait_seconds = max(1, settings.DB_QUERY_TIMEOUT_MS // 1000)
            try:
                self._connection = mysql.connector.connect(
                    host=settings.DB_HOST,
                    port=settings.DB_PORT,
                    database=settings.DB_DATABASE,
                    user=settings.DB_USER,
                    password=settings.DB_PASSWORD,
                    autocommit=False,  # Better control over transactions
                    charset="utf8mb4",
                    use_unicode=True,
                    connection_timeout=settings.DB_CONNECT_TIMEOUT,
                    init_command=(
                        f"SET SESSION max_execution_time = {int(settings.DB_QUERY_TIMEOUT_MS)}, "
                        f"SESSION innodb_lock_wait_timeout = {lock_wait_seconds}"
                    ),
                )
            except Error as e:
                raise StoreUnavailableError(f"Failed to connect to MySQL: {e}", original_exception=e)
        return self._connection

    @staticmethod
    def _database_error(message: str, error: Error, context: dict[str, Any] | None = None) -> DatabaseError:
        """Builds the application error for a failed statement."""
        if isinstance(error, (errors.InterfaceError, errors.OperationalError)) or error.errno in _UNAVAILABLE_ERRNOS:
            return StoreUnavailableError(f"{message}: {error}", original_exception=error, context=context)
        return DatabaseError(f"{message}: {error}", original_exception=error, context=context)

    def _rollback_quietly(self, conn) -> None:
        try:
            conn.rollback()
        except Error as e:
            # The original failure is what gets raised; a dead connection cannot roll back anyway
            logger.warning(f"Rollback failed: {e}")

    def ping(self) -> bool:
        """Checks that the store answers a trivial query."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            cursor.execute("SELECT 1")
            cursor.fetchall()
            return True
        except Error as e:
            raise self._database_error("Store health check failed", e)
        finally:
            cursor.close()

    def __del__(self) -> None:
        """Closes the database connection when the object is destroyed."""
        if self._connection and self._connection.is_connected():
            self._connection.close()
