"""
Job runner: executes steps in order and notifies listeners of the outcome.
"""

import time
import uuid
from datetime import datetime
from typing import List, Sequence

from src.batch.chunk_step import ChunkOrientedStep
from src.core.models import BatchStatus, JobResult, StepResult
from src.observability import metrics
from src.observability.logger import get_logger

logger = get_logger(__name__)


class JobExecutionListener:
    """
    Callbacks around a job run. Subclasses override what they need.

    Exceptions raised here are logged by the job and never change its outcome.
    """

    def before_job(self, job_name: str, run_id: str) -> None:  # noqa: B027
        """Called once before the first step runs."""
        pass

    def after_job(self, result: JobResult) -> None:  # noqa: B027
        """Called once after the last step ran, whether the job succeeded or not."""
        pass


class Job:
    """
    An ordered sequence of steps with an aggregate outcome.

    Steps run one after another in the calling thread; the first FAILED
    step stops the job and later steps never run.
    """

    def __init__(
        self,
        name: str,
        steps: Sequence[ChunkOrientedStep],
        listeners: Sequence[JobExecutionListener] | None = None,
    ):
        """
        Initialize job.

        Args:
            name: Job name used in logs, metrics and results
            steps: Steps to run, in order (at least one)
            listeners: Listeners notified before and after the run
        """
        if not steps:
            raise ValueError(f"Job '{name}' needs at least one step")

        self.name = name
        self.steps = list(steps)
        self.listeners = list(listeners or [])

    def run(self) -> JobResult:
        """
        Run every step until one fails, then notify listeners.

        Returns:
            JobResult with the aggregate status and per-step results
        """
        run_id = uuid.uuid4().hex
        start_time = datetime.utcnow()

        logger.info(
            f"Job '{self.name}' started",
            extra={"job": self.name, "run_id": run_id, "steps": [s.name for s in self.steps]},
        )
        for listener in self.listeners:
            self._notify(listener.before_job, self.name, run_id)

        step_results: List[StepResult] = []
        for step in self.steps:
            step_result = step.execute()
            step_results.append(step_result)
            if not step_result.successful:
                break

        status = JobResult.aggregate_status(step_results)
        failed = next((r for r in step_results if not r.successful), None)
        result = JobResult(
            job_name=self.name,
            run_id=run_id,
            status=status,
            step_results=step_results,
            failure=failed.failure if failed else None,
            start_time=start_time,
            end_time=datetime.utcnow(),
        )

        metrics.record_job(self.name, status.value, finished_at=time.time())
        log = logger.info if status == BatchStatus.COMPLETED else logger.error
        log(
            f"Job '{self.name}' finished with status {status.value}",
            extra={
                "job": self.name,
                "run_id": run_id,
                "status": status.value,
                "read_count": result.read_count,
                "write_count": result.write_count,
                "failure": result.failure,
            },
        )

        for listener in self.listeners:
            self._notify(listener.after_job, result)

        return result

    def _notify(self, callback, *args) -> None:
        try:
            callback(*args)
        except Exception as e:
            logger.error(
                f"Job listener {callback.__qualname__} raised: {e}",
                extra={"job": self.name, "listener": callback.__qualname__, "error_type": type(e).__name__},
                exc_info=True,
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, steps={[s.name for s in self.steps]})"
