"""
Prometheus metrics collection for the order import job

Counts records and chunks per step and job outcomes, so a run can be
scraped (or pushed) without parsing logs.
"""
import os
from pathlib import Path
from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    CollectorRegistry,
    write_to_textfile,
)
from typing import Optional


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# STEP METRICS
# =======================

records_read_total = Counter(
    name="batch_records_read_total",
    documentation="Total number of records returned by step readers",
    labelnames=["step"],
    registry=REGISTRY,
)

records_written_total = Counter(
    name="batch_records_written_total",
    documentation="Total number of records in committed chunks",
    labelnames=["step"],
    registry=REGISTRY,
)

records_filtered_total = Counter(
    name="batch_records_filtered_total",
    documentation="Total number of records skipped by step processors",
    labelnames=["step"],
    registry=REGISTRY,
)

chunks_total = Counter(
    name="batch_chunks_total",
    documentation="Total number of chunk writes by outcome",
    labelnames=["step", "outcome"],  # outcome: committed, rolled_back
    registry=REGISTRY,
)

chunk_size = Histogram(
    name="batch_chunk_size",
    documentation="Number of records per flushed chunk",
    labelnames=["step"],
    buckets=[1, 2, 3, 5, 10, 50, 100, 500, 1000, 5000],
    registry=REGISTRY,
)

step_duration_seconds = Histogram(
    name="batch_step_duration_seconds",
    documentation="Wall-clock duration of step executions",
    labelnames=["step", "status"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)

# =======================
# JOB METRICS
# =======================

job_runs_total = Counter(
    name="batch_job_runs_total",
    documentation="Total number of job runs by terminal status",
    labelnames=["job", "status"],
    registry=REGISTRY,
)

job_last_success_timestamp = Gauge(
    name="batch_job_last_success_timestamp_seconds",
    documentation="Unix time of the last COMPLETED run",
    labelnames=["job"],
    registry=REGISTRY,
)


# =======================
# EXPORT
# =======================

def write_metrics_file(path: str | Path) -> Path:
    """
    Write the current metrics to a file for a textfile collector.

    The exposition is written to a temporary file and renamed into place.

    Args:
        path: Destination file, conventionally ending in ".prom"

    Returns:
        The destination path
    """
    target = Path(path)
    write_to_textfile(str(target), REGISTRY)
    return target


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Only needed when the endpoint is enabled from the CLI
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


def get_sample(name: str, **labels) -> float:
    """
    Read the current value of a sample from the registry (0.0 if never observed).

    Args:
        name: Sample name, e.g. "batch_records_read_total"
        **labels: Label values identifying the series
    """
    value = REGISTRY.get_sample_value(name, labels)
    return value if value is not None else 0.0


# =======================
# BATCH-SPECIFIC HELPERS
# =======================

def record_read(step: str, count: int = 1) -> None:
    records_read_total.labels(step=step).inc(count)


def record_filtered(step: str, count: int = 1) -> None:
    records_filtered_total.labels(step=step).inc(count)


def record_chunk(step: str, size: int, committed: bool) -> None:
    """
    Record the outcome of one chunk flush.

    Args:
        step: Step name
        size: Records in the chunk
        committed: Whether the chunk's transaction committed
    """
    outcome = "committed" if committed else "rolled_back"
    chunks_total.labels(step=step, outcome=outcome).inc()
    chunk_size.labels(step=step).observe(size)
    if committed:
        records_written_total.labels(step=step).inc(size)


def record_step(step: str, status: str, duration_seconds: float) -> None:
    step_duration_seconds.labels(step=step, status=status).observe(duration_seconds)


def record_job(job: str, status: str, finished_at: float | None = None) -> None:
    """
    Record a finished job run.

    Args:
        job: Job name
        status: Terminal job status
        finished_at: Unix time the run finished, stamped on COMPLETED runs
    """
    job_runs_total.labels(job=job, status=status).inc()
    if status == "COMPLETED" and finished_at is not None:
        job_last_success_timestamp.labels(job=job).set(finished_at)
