"""
Chunk writer persisting orders into PostgreSQL.

Each chunk is inserted inside a single transaction: one parameterized
INSERT per record, committed once, rolled back entirely on any failure.
"""

from typing import List

import psycopg
from psycopg import sql

from src.batch.interfaces import ItemWriter
from src.core.config import DEFAULT_TABLE_NAME
from src.core.errors import WriteError
from src.core.models import OrderRecord
from src.observability.logger import get_logger
from src.utils.validation import sanitize_sql_identifier
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.orders_table import ORDER_COLUMNS

logger = get_logger(__name__)


class OrderChunkWriter(ItemWriter[OrderRecord]):
    """
    Writes chunks of OrderRecord into the orders table, all-or-nothing.
    """

    def __init__(self, pool: DatabaseConnectionPool, table_name: str = DEFAULT_TABLE_NAME):
        """
        Initialize order chunk writer.

        Args:
            pool: Database connection pool
            table_name: Target table
        """
        self.pool = pool
        self.table_name = sanitize_sql_identifier(table_name, field_name="table_name")
        self.insert_query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
            table=sql.Identifier(self.table_name),
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in ORDER_COLUMNS),
            values=sql.SQL(", ").join(sql.Placeholder(c) for c in ORDER_COLUMNS),
        )

    def write(self, chunk: List[OrderRecord]) -> int:
        """
        Insert every order of the chunk in one transaction.

        Args:
            chunk: Orders in read order

        Returns:
            Number of rows inserted

        Raises:
            WriteError: If any insert fails or the pool cannot hand out a
                        connection; nothing from the chunk is persisted
        """
        if not chunk:
            return 0

        try:
            with self.pool.transaction() as cur:
                for record in chunk:
                    cur.execute(self.insert_query, record.to_params())
        except (psycopg.Error, RuntimeError) as e:
            logger.error(
                f"Rolled back chunk of {len(chunk)} order(s): {e}",
                extra={
                    "table": self.table_name,
                    "chunk_size": len(chunk),
                    "first_order_id": chunk[0].order_id,
                    "error_type": type(e).__name__,
                },
            )
            raise WriteError(len(chunk), chunk[0].order_id, e) from e

        return len(chunk)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(table={self.table_name})"
