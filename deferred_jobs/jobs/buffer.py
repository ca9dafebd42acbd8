import structlog
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

from deferred_jobs.config import settings
from deferred_jobs.jobs.filters import JobFilter, effective_options

logger = structlog.get_logger()

# Lock strategy that only guards execution, never enqueueing
WHILE_EXECUTING = "while_executing"

Dispatch = Callable[[type, tuple, Optional[Mapping]], Any]


@dataclass(frozen=True)
class DeferredJob:
    """A job submission held back until its deferral scope ends."""
    job_type: type
    args: tuple
    options: Optional[Mapping] = None

    @property
    def dedup_key(self) -> tuple:
        """Identity used to collapse duplicates; runtime options are excluded."""
        return (self.job_type, _freeze(self.args))


def _freeze(value: Any) -> Any:
    """Convert nested job arguments into an order-insensitive hashable value."""
    if isinstance(value, Mapping):
        return frozenset((key, _freeze(item)) for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(_freeze(item) for item in value)
    try:
        hash(value)
    except TypeError:
        return repr(value)
    return value


def is_unique_job(job_type: type, options: Optional[Mapping] = None) -> bool:
    """Return True if the job type declares a uniqueness constraint.

    Args:
        job_type: Job class
        options: Optional runtime options for the job

    Returns:
        True if duplicate (job type, args) pairs should be collapsed on flush

    Note:
        The markers are only honored when the matching add-on is enabled in
        settings. A `while_executing` lock prevents concurrent execution but
        not concurrent enqueueing, so it never counts as unique.
    """
    resolved = effective_options(job_type, options)

    unique_for = resolved.get("unique_for") if settings.unique_for_enabled else None
    lock = resolved.get("lock") if settings.unique_lock_enabled else None

    if unique_for:
        return True
    if lock:
        return str(lock) != WHILE_EXECUTING
    return False


class JobBuffer:
    """Ordered in-memory list of deferred job submissions."""

    def __init__(self) -> None:
        self._jobs: list[DeferredJob] = []
        # Set when the outermost scope owning the buffer exits
        self.closed = False

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self):
        return iter(list(self._jobs))

    def append(self, job: DeferredJob) -> None:
        self._jobs.append(job)

        logger.debug(
            "job_deferred",
            job_type=job.job_type.__name__,
            pending=len(self._jobs),
            source="buffer",
        )

    def remove_matching(self, job_filter: JobFilter) -> int:
        """Discard every buffered job matching the filter.

        Args:
            job_filter: Filter selecting the jobs to discard

        Returns:
            Number of jobs removed
        """
        kept = [
            job for job in self._jobs
            if not job_filter.match(job.job_type, job.options)
        ]
        removed = len(self._jobs) - len(kept)
        self._jobs = kept

        if removed:
            logger.info(
                "deferred_jobs_aborted",
                count=removed,
                remaining=len(kept),
                source="buffer",
            )

        return removed

    def flush(self, job_filter: JobFilter, dispatch: Dispatch) -> int:
        """Dispatch buffered jobs matching the filter, in original order.

        Jobs that do not match stay buffered. Duplicate (job type, args)
        pairs of unique job types are dispatched once per flush.

        Args:
            job_filter: Filter selecting the jobs to dispatch
            dispatch: Callable receiving (job_type, args, options)

        Returns:
            Number of jobs dispatched

        Raises:
            Exception: Any exception from dispatch. Jobs that were not yet
                attempted remain buffered.
        """
        jobs = self._jobs
        remaining: list[DeferredJob] = []
        seen: set = set()
        dispatched = 0
        skipped = 0
        index = 0
        attempted = False

        try:
            for index, job in enumerate(jobs):
                if not job_filter.match(job.job_type, job.options):
                    remaining.append(job)
                    continue

                if is_unique_job(job.job_type, job.options):
                    key = job.dedup_key
                    if key in seen:
                        skipped += 1
                        continue
                    seen.add(key)

                attempted = True
                dispatch(job.job_type, job.args, job.options)
                attempted = False
                dispatched += 1

        except Exception as e:
            # A job whose dispatch raised is dropped; later jobs stay pending
            remaining.extend(jobs[index + 1 if attempted else index:])
            logger.error(
                "deferred_job_dispatch_failed",
                job_type=jobs[index].job_type.__name__,
                dispatched=dispatched,
                remaining=len(remaining),
                error=str(e),
                error_type=type(e).__name__,
                source="buffer",
                exc_info=True,
            )
            raise

        finally:
            self._jobs = remaining

        if dispatched or skipped:
            logger.info(
                "deferred_jobs_flushed",
                count=dispatched,
                duplicates_skipped=skipped,
                remaining=len(remaining),
                source="buffer",
            )

        return dispatched
