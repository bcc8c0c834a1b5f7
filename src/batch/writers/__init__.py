"""
Batch data sink writers.
"""

from .order_writer import OrderChunkWriter
from .retry_writer import RetryingItemWriter

__all__ = [
    "OrderChunkWriter",
    "RetryingItemWriter",
]
