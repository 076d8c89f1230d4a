# app/test_scheduler.py
from unittest.mock import MagicMock

from app.scheduler import (
    NOTIFICATION_CLEANUP_JOB_ID, TOKEN_CLEANUP_JOB_ID, build_scheduler, run_job
)

def test_both_cleanup_jobs_registered_daily():
    scheduler = build_scheduler(MagicMock(), interval_hours=24)
    jobs = {job.id: job for job in scheduler.get_jobs()}

    assert set(jobs) == {TOKEN_CLEANUP_JOB_ID, NOTIFICATION_CLEANUP_JOB_ID}
    for job in jobs.values():
        assert job.trigger.interval.total_seconds() == 24 * 3600

def test_run_job_swallows_failures():
    job = MagicMock(side_effect=RuntimeError("firestore unavailable"))
    run_job("clean_old_notifications", job)
    job.assert_called_once()
