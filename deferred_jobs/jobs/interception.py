import functools
from collections.abc import Mapping
from typing import Optional

from deferred_jobs.jobs.buffer import Dispatch
from deferred_jobs.jobs.context import defer_job, is_deferred
from deferred_jobs.jobs.queue import get_queue


def deferrable(submit: Dispatch) -> Dispatch:
    """Route a submit(job_type, args, options) callable through deferral.

    Matching submissions inside an active scope are buffered and return
    None; all others are forwarded to `submit` unchanged.
    """

    @functools.wraps(submit)
    def wrapper(job_type: type, args: tuple, options: Optional[Mapping] = None):
        if is_deferred(job_type, options):
            defer_job(job_type, args, options)
            return None
        return submit(job_type, args, options)

    return wrapper


def dispatch_job(
    job_type: type,
    args: tuple,
    options: Optional[Mapping] = None,
) -> str:
    """Send a job straight to the configured queue."""
    return get_queue().enqueue(job_type, args, options)


# Single submission seam used by every job entry point
push_job = deferrable(dispatch_job)
