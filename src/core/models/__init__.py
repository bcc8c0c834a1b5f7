"""
Core data models for the order import batch job.

All models use Pydantic for runtime validation and type safety.
"""

from .order_record import OrderRecord
from .step_result import BatchStatus, JobResult, StepResult

__all__ = [
    "OrderRecord",
    "BatchStatus",
    "StepResult",
    "JobResult",
]
