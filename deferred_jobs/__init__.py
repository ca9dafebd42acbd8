"""Defer background job enqueueing until the end of a block."""

from deferred_jobs.config import Settings, configure_logging, settings
from deferred_jobs.errors import DeferralError, DeferredJobsError, InvalidFilterError
from deferred_jobs.jobs import (
    JobQueue,
    JobSetter,
    Worker,
    abort_deferred_jobs,
    defer_jobs,
    enqueue_deferred_jobs,
    get_queue,
    set_queue,
)

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "configure_logging",
    "settings",
    "DeferralError",
    "DeferredJobsError",
    "InvalidFilterError",
    "JobQueue",
    "JobSetter",
    "Worker",
    "abort_deferred_jobs",
    "defer_jobs",
    "enqueue_deferred_jobs",
    "get_queue",
    "set_queue",
]
