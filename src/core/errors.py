"""
Error taxonomy for the chunked batch engine.

Every error raised while reading, transforming or writing records is a
BatchError subclass. Each of them is fatal to the step that raised it.
"""

from typing import Any


class BatchError(Exception):
    """Base class for all step-fatal batch processing errors."""


class ParseError(BatchError):
    """Raised when a source line cannot be parsed into an order record."""

    def __init__(self, line_number: int, raw_line: str, reason: str):
        self.line_number = line_number
        self.raw_line = raw_line
        self.reason = reason
        super().__init__(f"Line {line_number}: {reason} (raw: {raw_line!r})")


class TransformError(BatchError):
    """Raised when a record is not valid input for a processor."""

    def __init__(self, order_id: Any, reason: str):
        self.order_id = order_id
        self.reason = reason
        super().__init__(f"Order {order_id}: {reason}")


class WriteError(BatchError):
    """
    Raised when the store rejects a chunk.

    The chunk's transaction has been rolled back by the time this is raised;
    the underlying driver error is kept on ``cause``.
    """

    def __init__(self, chunk_size: int, first_order_id: Any, cause: Exception):
        self.chunk_size = chunk_size
        self.first_order_id = first_order_id
        self.cause = cause
        super().__init__(
            f"Failed to write chunk of {chunk_size} record(s) starting at order "
            f"{first_order_id}: {cause}"
        )


__all__ = ["BatchError", "ParseError", "TransformError", "WriteError"]
