"""
Chunk-oriented step: the engine that moves records from a reader,
through a processor, into a writer in fixed-size chunks.

State machine per execution:

    IDLE -> READING -> ACCUMULATING <-> FLUSHING -> DRAINED -> COMPLETED

Any read, process or write error moves the step to FAILED.

Each flush is one writer call and therefore one transaction. A failed
flush rolls back only its own chunk; earlier chunks stay committed.
"""

import time
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from src.batch.interfaces import ItemProcessor, ItemReader, ItemWriter
from src.core.models import BatchStatus, StepResult
from src.observability import metrics
from src.observability.logger import get_logger

logger = get_logger(__name__)


class StepState(str, Enum):
    IDLE = "IDLE"
    READING = "READING"
    ACCUMULATING = "ACCUMULATING"
    FLUSHING = "FLUSHING"
    DRAINED = "DRAINED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


_TRANSITIONS = {
    StepState.IDLE: {StepState.READING},
    StepState.READING: {StepState.ACCUMULATING, StepState.FAILED},
    StepState.ACCUMULATING: {StepState.FLUSHING, StepState.DRAINED, StepState.FAILED},
    StepState.FLUSHING: {StepState.ACCUMULATING, StepState.FAILED},
    StepState.DRAINED: {StepState.COMPLETED, StepState.FAILED},
    StepState.COMPLETED: set(),
    StepState.FAILED: set(),
}


class ChunkOrientedStep:
    """
    Reads, processes and writes records in chunks of ``chunk_size``.

    A step instance runs once. To retry, build a new step; its reader is
    re-opened from the start.
    """

    def __init__(
        self,
        name: str,
        reader: ItemReader,
        processor: ItemProcessor,
        writer: ItemWriter,
        chunk_size: int,
    ):
        """
        Initialize chunk-oriented step.

        Args:
            name: Step name used in logs, metrics and results
            reader: Source of records
            processor: Per-record transformation
            writer: Atomic chunk sink
            chunk_size: Maximum records per chunk (positive)
        """
        if not isinstance(chunk_size, int) or isinstance(chunk_size, bool) or chunk_size < 1:
            raise ValueError(f"chunk_size must be a positive integer, got {chunk_size!r}")

        self.name = name
        self.reader = reader
        self.processor = processor
        self.writer = writer
        self.chunk_size = chunk_size
        self._state = StepState.IDLE
        self._counts: Dict[str, int] = {}

    @property
    def state(self) -> StepState:
        return self._state

    def _transition(self, target: StepState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise RuntimeError(
                f"Step '{self.name}' cannot move from {self._state.value} to {target.value}"
            )
        logger.debug(
            f"Step '{self.name}': {self._state.value} -> {target.value}",
            extra={"step": self.name, "from_state": self._state.value, "to_state": target.value},
        )
        self._state = target

    def execute(self) -> StepResult:
        """
        Run the step until the reader is exhausted or a fatal error occurs.

        Errors from reading, processing or writing don't propagate: they end
        the step in FAILED and are reported on the returned result.

        Returns:
            StepResult with terminal status and counts

        Raises:
            RuntimeError: If the step was already executed
        """
        if self._state is not StepState.IDLE:
            raise RuntimeError(f"Step '{self.name}' has already been executed")

        start_time = datetime.utcnow()
        started = time.monotonic()
        self._counts = {
            "read_count": 0,
            "process_count": 0,
            "filter_count": 0,
            "write_count": 0,
            "commit_count": 0,
            "rollback_count": 0,
        }
        failure: Exception | None = None

        logger.info(
            f"Step '{self.name}' started",
            extra={"step": self.name, "chunk_size": self.chunk_size, "reader": repr(self.reader)},
        )

        self._transition(StepState.READING)
        try:
            with self.reader:
                self._transition(StepState.ACCUMULATING)
                self._run_chunks()
            self._transition(StepState.DRAINED)
        except Exception as e:
            failure = e

        if failure is None:
            self._transition(StepState.COMPLETED)
            status = BatchStatus.COMPLETED
        else:
            self._state = StepState.FAILED
            status = BatchStatus.FAILED

        result = StepResult(
            step_name=self.name,
            status=status,
            failure=str(failure) if failure is not None else None,
            failure_type=type(failure).__name__ if failure is not None else None,
            start_time=start_time,
            end_time=datetime.utcnow(),
            **self._counts,
        )
        metrics.record_step(self.name, status.value, time.monotonic() - started)
        self._log_result(result, failure)
        return result

    def _run_chunks(self) -> None:
        chunk: List[Any] = []

        while True:
            item = self.reader.read()
            if item is None:
                break

            self._counts["read_count"] += 1
            metrics.record_read(self.name)

            processed = self.processor.process(item)
            self._counts["process_count"] += 1

            if processed is None:
                self._counts["filter_count"] += 1
                metrics.record_filtered(self.name)
                continue

            chunk.append(processed)
            if len(chunk) == self.chunk_size:
                self._flush(chunk)
                chunk = []

        if chunk:
            self._flush(chunk)

    def _flush(self, chunk: List[Any]) -> None:
        self._transition(StepState.FLUSHING)
        chunk_number = self._counts["commit_count"] + 1

        try:
            self.writer.write(chunk)
        except Exception:
            self._counts["rollback_count"] += 1
            metrics.record_chunk(self.name, len(chunk), committed=False)
            raise

        self._counts["write_count"] += len(chunk)
        self._counts["commit_count"] += 1
        metrics.record_chunk(self.name, len(chunk), committed=True)

        logger.info(
            f"Step '{self.name}' committed chunk {chunk_number} ({len(chunk)} records)",
            extra={
                "step": self.name,
                "chunk_number": chunk_number,
                "chunk_size": len(chunk),
                "first_item": _item_key(chunk[0]),
                "last_item": _item_key(chunk[-1]),
                "write_count": self._counts["write_count"],
            },
        )
        self._transition(StepState.ACCUMULATING)

    def _log_result(self, result: StepResult, failure: Exception | None) -> None:
        fields = {
            "step": self.name,
            "status": result.status.value,
            "read_count": result.read_count,
            "filter_count": result.filter_count,
            "write_count": result.write_count,
            "commit_count": result.commit_count,
            "rollback_count": result.rollback_count,
            "duration_seconds": round(result.duration_seconds, 3),
        }
        if failure is None:
            logger.info(f"Step '{self.name}' completed", extra=fields)
        else:
            logger.error(
                f"Step '{self.name}' failed: {failure}",
                extra={**fields, "error_type": type(failure).__name__},
                exc_info=failure,
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, chunk_size={self.chunk_size})"


def _item_key(item: Any) -> Any:
    return getattr(item, "order_id", repr(item))
