"""
Test doubles shared by the unit tests.
"""
from contextlib import contextmanager
from typing import List

import psycopg

from src.batch.interfaces import ItemWriter
from src.core.errors import WriteError
from src.core.models import OrderRecord


class FakeCursor:
    """Cursor that stages inserts into its transaction."""

    def __init__(self, transaction: "FakeTransaction"):
        self.transaction = transaction
        self.rowcount = 0

    def execute(self, query, params=None) -> None:
        pool = self.transaction.pool
        pool.statements.append((query, params))

        if pool.fail_on_order_ids and params and params.get("order_id") in pool.fail_on_order_ids:
            raise psycopg.OperationalError(f"injected failure for order {params['order_id']}")

        if params and "order_id" in params:
            order_id = params["order_id"]
            staged_ids = {row["order_id"] for row in self.transaction.staged}
            if order_id in pool.committed_ids() or order_id in staged_ids:
                raise psycopg.IntegrityError(
                    f'duplicate key value violates unique constraint "orders_pkey" ({order_id})'
                )
            self.transaction.staged.append(dict(params))
        self.rowcount = 1


class FakeTransaction:
    def __init__(self, pool: "FakeConnectionPool"):
        self.pool = pool
        self.staged: List[dict] = []


class FakeConnectionPool:
    """
    In-memory stand-in for DatabaseConnectionPool.

    Rows staged inside transaction() become visible only when the block
    exits without an exception, like a real transaction.
    """

    def __init__(self):
        self.rows: List[dict] = []
        self.committed_chunks: List[List[int]] = []
        self.statements: list = []
        self.rollbacks = 0
        self.fail_on_order_ids: set = set()
        self.closed = False

    def committed_ids(self) -> set:
        return {row["order_id"] for row in self.rows}

    @contextmanager
    def transaction(self):
        tx = FakeTransaction(self)
        try:
            yield FakeCursor(tx)
        except Exception:
            self.rollbacks += 1
            raise
        if tx.staged:
            self.rows.extend(tx.staged)
            self.committed_chunks.append([row["order_id"] for row in tx.staged])

    def execute_query(self, query, params=None) -> list[dict]:
        if "COUNT(*)" in repr(query):
            return [{"total": len(self.rows)}]
        return sorted((dict(row) for row in self.rows), key=lambda row: row["order_id"])

    def execute_command(self, command, params=None) -> int:
        self.statements.append((command, params))
        return 0

    def close(self) -> None:
        self.closed = True


class RecordingWriter(ItemWriter[OrderRecord]):
    """Writer keeping every chunk it accepted; can fail on a given call."""

    def __init__(self, fail_on_call: int | None = None):
        self.chunks: List[List[OrderRecord]] = []
        self.calls = 0
        self.fail_on_call = fail_on_call

    def write(self, chunk: List[OrderRecord]) -> int:
        self.calls += 1
        if self.fail_on_call is not None and self.calls == self.fail_on_call:
            raise WriteError(len(chunk), chunk[0].order_id, RuntimeError("store unavailable"))
        self.chunks.append(list(chunk))
        return len(chunk)

    @property
    def written_ids(self) -> List[int]:
        return [record.order_id for chunk in self.chunks for record in chunk]


