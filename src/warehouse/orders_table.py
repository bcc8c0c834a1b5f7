"""
Access to the orders table the import job writes into.

Only bootstrap DDL lives here (CREATE TABLE IF NOT EXISTS for local runs
and tests); schema migrations are managed outside this project.
"""

from typing import Any

from psycopg import sql

from src.core.config import DEFAULT_TABLE_NAME
from src.utils.validation import sanitize_sql_identifier

from .connection import DatabaseConnectionPool

ORDER_COLUMNS = ("order_id", "customer_name", "amount")


class OrdersTable:
    """
    Read-side and bootstrap operations on the orders table.
    """

    def __init__(self, pool: DatabaseConnectionPool, table_name: str = DEFAULT_TABLE_NAME):
        """
        Initialize orders table accessor.

        Args:
            pool: Database connection pool
            table_name: Name of the target table
        """
        self.pool = pool
        self.table_name = sanitize_sql_identifier(table_name, field_name="table_name")
        self._table = sql.Identifier(self.table_name)

    def create_if_missing(self) -> None:
        """Create the table when it doesn't exist yet."""
        ddl = sql.SQL(
            """
            CREATE TABLE IF NOT EXISTS {table} (
                order_id INTEGER PRIMARY KEY,
                customer_name TEXT NOT NULL,
                amount DOUBLE PRECISION NOT NULL
            )
            """
        ).format(table=self._table)
        self.pool.execute_command(ddl)

    def truncate(self) -> None:
        self.pool.execute_command(sql.SQL("TRUNCATE TABLE {table}").format(table=self._table))

    def count(self) -> int:
        query = sql.SQL("SELECT COUNT(*) AS total FROM {table}").format(table=self._table)
        result = self.pool.execute_query(query)
        return result[0]["total"] if result else 0

    def fetch_all(self) -> list[dict[str, Any]]:
        """
        Read every persisted order, ordered by order_id.

        Returns:
            List of row dictionaries keyed by column name
        """
        query = sql.SQL("SELECT {columns} FROM {table} ORDER BY order_id").format(
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in ORDER_COLUMNS),
            table=self._table,
        )
        return self.pool.execute_query(query)
