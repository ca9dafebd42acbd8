from contextlib import contextmanager
from typing import Any, Iterator

import structlog

from deferred_jobs.jobs import context
from deferred_jobs.jobs.filters import JobFilter
from deferred_jobs.jobs.interception import push_job

logger = structlog.get_logger()


@contextmanager
def defer_jobs(*filters: Any) -> Iterator[None]:
    """Defer enqueuing jobs inside the block until the block ends.

    Any job that would normally be enqueued with perform_async() is instead
    buffered and enqueued when the outermost defer_jobs() block exits, even
    if the block raised.

    Args:
        *filters: Optional filters on which jobs are deferred. A job class
            matches that class and its subclasses (mixins included), a
            mapping matches jobs whose options contain every key/value pair.
            Jobs matching any filter are deferred; others enqueue as normal.
            A single False disables deferral entirely inside the block.

    Raises:
        InvalidFilterError: If a filter is not a class, mapping, or True

    Example:
        with defer_jobs():
            SendEmail.perform_async(user.id)
            save(user)
        # SendEmail enqueued here
    """
    if len(filters) == 1 and filters[0] is False:
        with context.undeferred():
            yield
        return

    job_filter = JobFilter.parse(*filters)
    with context.defer(job_filter, push_job):
        yield


def abort_deferred_jobs(*filters: Any) -> None:
    """Discard jobs already deferred in the current defer_jobs() block.

    Args:
        *filters: See defer_jobs(). Only matching jobs are discarded; with no
            filters every deferred job is discarded.
    """
    removed = context.abort(JobFilter.parse(*filters))
    logger.debug("abort_deferred_jobs", count=removed, source="api")


def enqueue_deferred_jobs(*filters: Any) -> None:
    """Immediately enqueue jobs already deferred in the current block.

    Args:
        *filters: See defer_jobs(). Only matching jobs are enqueued; the rest
            stay deferred until the block ends.

    Raises:
        Exception: Any error raised by the queue while enqueuing
    """
    enqueued = context.force_flush(JobFilter.parse(*filters), push_job)
    logger.debug("enqueue_deferred_jobs", count=enqueued, source="api")
