"""
Execution outcome models for steps and jobs.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class BatchStatus(str, Enum):
    """Terminal (or initial) status of a step or job execution."""

    STARTING = "STARTING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    PARTIALLY_COMPLETED = "PARTIALLY_COMPLETED"


class StepResult(BaseModel):
    """
    Outcome of running one step to exhaustion (or to its first fatal error).

    Counts accumulated before a failure are kept for diagnostics.

    Attributes:
        step_name: Name of the step
        status: COMPLETED or FAILED
        read_count: Records returned by the reader
        process_count: Records that went through the processor
        filter_count: Records the processor chose to skip
        write_count: Records in committed chunks
        commit_count: Chunks committed
        rollback_count: Chunks rolled back
        failure: Message of the first fatal error
        failure_type: Exception class name of the first fatal error
        start_time: When the step left IDLE
        end_time: When the step reached a terminal state
    """

    step_name: str
    status: BatchStatus
    read_count: int = Field(0, ge=0)
    process_count: int = Field(0, ge=0)
    filter_count: int = Field(0, ge=0)
    write_count: int = Field(0, ge=0)
    commit_count: int = Field(0, ge=0)
    rollback_count: int = Field(0, ge=0)
    failure: str | None = None
    failure_type: str | None = None
    start_time: datetime = Field(default_factory=datetime.utcnow)
    end_time: datetime | None = None

    @property
    def successful(self) -> bool:
        return self.status == BatchStatus.COMPLETED

    @property
    def duration_seconds(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "step_name": "importOrderStep",
                "status": "COMPLETED",
                "read_count": 7,
                "process_count": 7,
                "filter_count": 0,
                "write_count": 7,
                "commit_count": 3,
                "rollback_count": 0,
            }
        }


class JobResult(BaseModel):
    """
    Aggregate outcome of one job run, handed read-only to job listeners.

    Attributes:
        job_name: Name of the job
        run_id: Unique identifier of this run
        status: COMPLETED, FAILED or PARTIALLY_COMPLETED
        step_results: Results of the steps that ran, in execution order
        failure: Failure message of the step that stopped the job
        start_time: When the job started
        end_time: When the last step finished
    """

    job_name: str
    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    status: BatchStatus
    step_results: List[StepResult] = Field(default_factory=list)
    failure: str | None = None
    start_time: datetime = Field(default_factory=datetime.utcnow)
    end_time: datetime | None = None

    @property
    def successful(self) -> bool:
        return self.status == BatchStatus.COMPLETED

    @property
    def write_count(self) -> int:
        return sum(step.write_count for step in self.step_results)

    @property
    def read_count(self) -> int:
        return sum(step.read_count for step in self.step_results)

    @classmethod
    def aggregate_status(cls, step_results: List[StepResult]) -> BatchStatus:
        """
        Derive a job status from its step results.

        All steps completed -> COMPLETED. The first step failed -> FAILED.
        A step failed after at least one completed -> PARTIALLY_COMPLETED.
        """
        if not step_results:
            return BatchStatus.COMPLETED
        if all(step.successful for step in step_results):
            return BatchStatus.COMPLETED
        if any(step.successful for step in step_results):
            return BatchStatus.PARTIALLY_COMPLETED
        return BatchStatus.FAILED

    class Config:
        frozen = True
