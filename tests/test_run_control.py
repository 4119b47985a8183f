"""Tests for import job bookkeeping."""
import pytest

from catalog_refresh.jobs.run_control import ImportJob, JobState


def test_job_lifecycle():
    job = ImportJob()
    assert job.state is JobState.IDLE
    job.start()
    assert job.state is JobState.RUNNING
    job.record_dispatch()
    job.record_dispatch()
    job.record_completion()
    assert job.in_flight == 1
    job.record_completion()
    job.mark_succeeded()

    summary = job.get_summary()
    assert summary["state"] == "succeeded"
    assert summary["dispatched"] == summary["completed"] == 2
    assert summary["error"] is None


def test_job_cannot_start_twice():
    job = ImportJob()
    job.start()
    with pytest.raises(RuntimeError):
        job.start()


def test_failed_job_keeps_reason():
    job = ImportJob()
    job.start()
    job.mark_failed("Error obtaining car models")
    assert job.state is JobState.FAILED
    assert job.get_summary()["error"] == "Error obtaining car models"


def test_format_duration():
    job = ImportJob(start_time=100.0, end_time=100.0 + 12 * 60 + 5)
    assert job.format_duration() == "12M:5s"
