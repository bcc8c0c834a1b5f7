"""
Unit tests for the job runner and its listeners.
"""

from typing import List

import pytest

from src.batch.chunk_step import ChunkOrientedStep
from src.batch.job import Job, JobExecutionListener
from src.batch.listeners import JobCompletionNotificationListener
from src.batch.processors import DiscountProcessor
from src.batch.readers import CSVOrderReader
from src.batch.writers import OrderChunkWriter
from src.core.models import BatchStatus, JobResult
from src.observability.metrics import get_sample
from src.warehouse.orders_table import OrdersTable

from tests.helpers import RecordingWriter


class RecordingListener(JobExecutionListener):
    def __init__(self):
        self.events: List[tuple] = []

    def before_job(self, job_name: str, run_id: str) -> None:
        self.events.append(("before", job_name, run_id))

    def after_job(self, result: JobResult) -> None:
        self.events.append(("after", result))


class ExplodingListener(JobExecutionListener):
    def after_job(self, result: JobResult) -> None:
        raise RuntimeError("verification query failed")


def _csv_step(path, writer, name="importOrderStep", chunk_size=3) -> ChunkOrientedStep:
    return ChunkOrientedStep(
        name=name,
        reader=CSVOrderReader(path),
        processor=DiscountProcessor(),
        writer=writer,
        chunk_size=chunk_size,
    )


@pytest.mark.unit
class TestJob:
    """Tests for Job"""

    def test_single_step_success(self, sample_orders_csv, recording_writer):
        job = Job("importOrderJob", [_csv_step(sample_orders_csv, recording_writer)])

        result = job.run()

        assert result.status == BatchStatus.COMPLETED
        assert result.job_name == "importOrderJob"
        assert len(result.step_results) == 1
        assert result.write_count == 7
        assert result.failure is None
        assert result.end_time >= result.start_time

    def test_single_step_failure(self, write_orders_csv, recording_writer):
        path = write_orders_csv(["1,A,10", "2,B,oops"])
        job = Job("importOrderJob", [_csv_step(path, recording_writer)])

        result = job.run()

        assert result.status == BatchStatus.FAILED
        assert "Line 3" in result.failure
        assert result.write_count == 0

    def test_stops_at_first_failed_step(self, write_orders_csv, sample_orders_csv):
        bad = write_orders_csv(["x,A,10"], name="bad.csv")
        first, second, third = RecordingWriter(), RecordingWriter(), RecordingWriter()
        job = Job(
            "multiStepJob",
            [
                _csv_step(sample_orders_csv, first, name="first"),
                _csv_step(bad, second, name="second"),
                _csv_step(sample_orders_csv, third, name="third"),
            ],
        )

        result = job.run()

        assert result.status == BatchStatus.PARTIALLY_COMPLETED
        assert [s.step_name for s in result.step_results] == ["first", "second"]
        assert third.calls == 0
        assert len(first.written_ids) == 7

    def test_listeners_called_around_run(self, sample_orders_csv, recording_writer):
        listener = RecordingListener()
        job = Job("importOrderJob", [_csv_step(sample_orders_csv, recording_writer)], [listener])

        result = job.run()

        assert [event[0] for event in listener.events] == ["before", "after"]
        assert listener.events[0][1] == "importOrderJob"
        assert listener.events[0][2] == result.run_id
        assert listener.events[1][1] is result

    def test_listener_called_on_failure(self, write_orders_csv, recording_writer):
        listener = RecordingListener()
        path = write_orders_csv(["1,A"])
        job = Job("importOrderJob", [_csv_step(path, recording_writer)], [listener])

        job.run()

        assert listener.events[-1][1].status == BatchStatus.FAILED

    def test_listener_error_does_not_mask_outcome(self, sample_orders_csv, recording_writer, app_caplog):
        after = RecordingListener()
        job = Job(
            "importOrderJob",
            [_csv_step(sample_orders_csv, recording_writer)],
            [ExplodingListener(), after],
        )

        result = job.run()

        assert result.status == BatchStatus.COMPLETED
        assert after.events[-1][0] == "after"
        errors = [r for r in app_caplog.records if r.levelname == "ERROR"]
        assert any("verification query failed" in r.getMessage() for r in errors)

    def test_job_needs_a_step(self):
        with pytest.raises(ValueError, match="at least one step"):
            Job("emptyJob", [])

    def test_run_metrics_recorded(self, sample_orders_csv, recording_writer):
        before = get_sample("batch_job_runs_total", job="metricsJob", status="COMPLETED")

        Job("metricsJob", [_csv_step(sample_orders_csv, recording_writer)]).run()

        assert get_sample("batch_job_runs_total", job="metricsJob", status="COMPLETED") - before == 1
        assert get_sample("batch_job_last_success_timestamp_seconds", job="metricsJob") > 0


@pytest.mark.unit
class TestJobCompletionNotificationListener:
    """Tests for JobCompletionNotificationListener"""

    def test_reads_rows_back_on_success(self, sample_orders_csv, fake_pool, app_caplog):
        listener = JobCompletionNotificationListener(OrdersTable(fake_pool))
        job = Job("importOrderJob", [_csv_step(sample_orders_csv, OrderChunkWriter(fake_pool))], [listener])

        job.run()

        assert [row["order_id"] for row in listener.last_verified_rows] == [1, 2, 3, 4, 5, 6, 7]
        messages = [r.getMessage() for r in app_caplog.records]
        assert "Job 'importOrderJob' finished, verifying results" in messages
        assert "Found order 1 in the database" in messages
        assert any(m.startswith("Verified 7 row(s) in table 'orders'") for m in messages)

    def test_no_read_back_on_failure(self, write_orders_csv, fake_pool, app_caplog):
        listener = JobCompletionNotificationListener(OrdersTable(fake_pool))
        path = write_orders_csv(["1,A,1", "bad"])
        job = Job("importOrderJob", [_csv_step(path, OrderChunkWriter(fake_pool))], [listener])

        job.run()

        assert listener.last_verified_rows == []
        assert any(
            "ended with status FAILED" in r.getMessage()
            for r in app_caplog.records
            if r.levelname == "ERROR"
        )
