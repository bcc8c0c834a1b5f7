"""
Job listeners shipped with the order import job.
"""

from typing import Any, Dict, List

from src.batch.job import JobExecutionListener
from src.core.models import BatchStatus, JobResult
from src.observability.logger import get_logger
from src.warehouse.orders_table import OrdersTable

logger = get_logger(__name__)


class JobCompletionNotificationListener(JobExecutionListener):
    """
    Reports the outcome of a run and, on success, reads the persisted
    orders back so the log shows what actually landed in the store.
    """

    def __init__(self, orders_table: OrdersTable):
        self.orders_table = orders_table
        self.last_verified_rows: List[Dict[str, Any]] = []

    def after_job(self, result: JobResult) -> None:
        if result.status != BatchStatus.COMPLETED:
            logger.error(
                f"Job '{result.job_name}' ended with status {result.status.value}: {result.failure}",
                extra={"job": result.job_name, "run_id": result.run_id, "status": result.status.value},
            )
            return

        logger.info(
            f"Job '{result.job_name}' finished, verifying results",
            extra={"job": result.job_name, "run_id": result.run_id},
        )

        rows = self.orders_table.fetch_all()
        self.last_verified_rows = list(rows)

        for row in rows:
            logger.info(
                f"Found order {row['order_id']} in the database",
                extra={
                    "order_id": row["order_id"],
                    "customer_name": row["customer_name"],
                    "amount": row["amount"],
                },
            )

        logger.info(
            f"Verified {len(rows)} row(s) in table '{self.orders_table.table_name}' "
            f"({result.write_count} written by this run)",
            extra={
                "job": result.job_name,
                "run_id": result.run_id,
                "rows_in_table": len(rows),
                "rows_written": result.write_count,
            },
        )
