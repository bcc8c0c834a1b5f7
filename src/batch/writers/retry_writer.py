"""
Opt-in retry around any ItemWriter.

A failed chunk has already been rolled back by the wrapped writer, so
writing the same chunk again is safe. Retry is off unless a job is
configured with more than one write attempt.
"""

from typing import List, Tuple, Type, TypeVar

import tenacity

from src.batch.interfaces import ItemWriter
from src.core.errors import WriteError
from src.observability.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryingItemWriter(ItemWriter[T]):
    """
    Retries a delegate writer with exponential backoff.

    Usage:
        writer = RetryingItemWriter(OrderChunkWriter(pool), max_attempts=3)
    """

    def __init__(
        self,
        delegate: ItemWriter[T],
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        retry_exceptions: Tuple[Type[Exception], ...] = (WriteError,),
    ):
        """
        Args:
            delegate: Writer doing the actual work
            max_attempts: Total attempts per chunk, including the first
            backoff_seconds: Base delay, doubled after each failed attempt
            retry_exceptions: Only these exceptions trigger a retry
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        if backoff_seconds < 0:
            raise ValueError(f"backoff_seconds must be non-negative, got {backoff_seconds}")

        self.delegate = delegate
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.retry_exceptions = retry_exceptions

    def _before_sleep(self, retry_state: tenacity.RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"Chunk write attempt {retry_state.attempt_number}/{self.max_attempts} failed: {exception}",
            extra={
                "attempt": retry_state.attempt_number,
                "max_attempts": self.max_attempts,
                "sleep_seconds": retry_state.next_action.sleep if retry_state.next_action else 0,
            },
        )

    def write(self, chunk: List[T]) -> int:
        retrying = tenacity.Retrying(
            stop=tenacity.stop_after_attempt(self.max_attempts),
            wait=tenacity.wait_exponential(multiplier=self.backoff_seconds, min=self.backoff_seconds),
            retry=tenacity.retry_if_exception_type(self.retry_exceptions),
            before_sleep=self._before_sleep,
            reraise=True,
        )
        return retrying(self.delegate.write, chunk)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.delegate!r}, max_attempts={self.max_attempts})"
