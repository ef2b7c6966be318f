"""Recurring server-side jobs."""
from tokenwatch.jobs.refresh_job import JobReport, authorize, run_refresh_job

__all__ = ["JobReport", "authorize", "run_refresh_job"]
