"""Deferred job buffering for background job submission."""

from .api import abort_deferred_jobs, defer_jobs, enqueue_deferred_jobs
from .buffer import DeferredJob, JobBuffer, is_unique_job
from .context import pending_jobs, undeferred
from .filters import JobFilter, MatchAll, OptionMatch, TypeMatch
from .interception import deferrable, push_job
from .queue import Job, JobQueue, get_queue, set_queue
from .worker import JobSetter, Worker

__all__ = [
    "abort_deferred_jobs",
    "defer_jobs",
    "enqueue_deferred_jobs",
    "DeferredJob",
    "JobBuffer",
    "is_unique_job",
    "pending_jobs",
    "undeferred",
    "JobFilter",
    "MatchAll",
    "OptionMatch",
    "TypeMatch",
    "deferrable",
    "push_job",
    "Job",
    "JobQueue",
    "get_queue",
    "set_queue",
    "JobSetter",
    "Worker",
]
