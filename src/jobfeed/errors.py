# src/jobfeed/errors.py
"""Errors raised by the listing client and the job cache."""


class JobFeedError(Exception):
    """Base class for everything this package raises on purpose."""


class FetchError(JobFeedError):
    """Transport, HTTP status or deserialization failure."""


class NotFoundError(JobFeedError):
    """Well-formed response that holds no matching job."""

    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id
