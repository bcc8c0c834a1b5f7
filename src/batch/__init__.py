"""
Chunk-oriented batch processing module.
"""

from .chunk_step import ChunkOrientedStep, StepState
from .interfaces import ItemProcessor, ItemReader, ItemWriter
from .job import Job, JobExecutionListener
from .listeners import JobCompletionNotificationListener
from .pipeline import build_import_order_job
from .processors import DiscountProcessor
from .readers import CSVOrderReader
from .writers import OrderChunkWriter, RetryingItemWriter

__all__ = [
    "ChunkOrientedStep",
    "StepState",
    "ItemReader",
    "ItemProcessor",
    "ItemWriter",
    "Job",
    "JobExecutionListener",
    "JobCompletionNotificationListener",
    "build_import_order_job",
    "CSVOrderReader",
    "DiscountProcessor",
    "OrderChunkWriter",
    "RetryingItemWriter",
]
