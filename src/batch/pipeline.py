"""
Setup routine wiring the order import job from settings.

Plain constructor composition: reader, processor, writer, step and job
are built explicitly here and nowhere else.
"""

from typing import Sequence

from src.batch.chunk_step import ChunkOrientedStep
from src.batch.interfaces import ItemWriter
from src.batch.job import Job, JobExecutionListener
from src.batch.listeners import JobCompletionNotificationListener
from src.batch.processors import DiscountProcessor
from src.batch.readers import CSVOrderReader
from src.batch.writers import OrderChunkWriter, RetryingItemWriter
from src.core.config import JobSettings
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.orders_table import OrdersTable

IMPORT_ORDER_JOB = "importOrderJob"
IMPORT_ORDER_STEP = "importOrderStep"


def build_order_writer(settings: JobSettings, pool: DatabaseConnectionPool) -> ItemWriter:
    """
    Build the chunk writer, wrapped in a retry decorator when more than
    one write attempt is configured.
    """
    writer: ItemWriter = OrderChunkWriter(pool, table_name=settings.table_name)
    if settings.write_retry_attempts > 1:
        writer = RetryingItemWriter(writer, max_attempts=settings.write_retry_attempts)
    return writer


def build_import_order_step(settings: JobSettings, pool: DatabaseConnectionPool) -> ChunkOrientedStep:
    """
    Build the single chunk-oriented step of the order import job.

    Raises:
        ValueError: If settings have no input_path
    """
    if settings.input_path is None:
        raise ValueError("input_path must be set to build the import step")

    return ChunkOrientedStep(
        name=IMPORT_ORDER_STEP,
        reader=CSVOrderReader(settings.input_path, delimiter=settings.delimiter),
        processor=DiscountProcessor(settings.discount_rate),
        writer=build_order_writer(settings, pool),
        chunk_size=settings.chunk_size,
    )


def build_import_order_job(
    settings: JobSettings,
    pool: DatabaseConnectionPool,
    listeners: Sequence[JobExecutionListener] | None = None,
) -> Job:
    """
    Build the order import job.

    Args:
        settings: Validated job settings
        pool: Open database connection pool
        listeners: Job listeners; defaults to a completion listener that
                   reads the persisted orders back

    Returns:
        Job ready to run()
    """
    if listeners is None:
        listeners = [JobCompletionNotificationListener(OrdersTable(pool, settings.table_name))]

    return Job(
        name=IMPORT_ORDER_JOB,
        steps=[build_import_order_step(settings, pool)],
        listeners=listeners,
    )
