import json
import time
import uuid
import structlog
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

from deferred_jobs.config import settings
from deferred_jobs.jobs.filters import effective_options

logger = structlog.get_logger()


@dataclass
class Job:
    """Represents a job accepted by the queue."""
    id: str
    type: str
    queue: str
    args: list
    options: dict = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)
    scheduled_at: Optional[float] = None


class JobQueue:
    """In-memory job queue client.

    This class is the dispatch boundary of the package: everything that
    eventually enqueues a job calls enqueue(). It keeps accepted jobs in
    memory, which makes it easy to swap for a client backed by Redis or
    another broker by only modifying this file.
    """

    def __init__(self) -> None:
        self.jobs: list[Job] = []
        self.scheduled: list[Job] = []
        logger.debug("job_queue_initialized", source="queue")

    def enqueue(
        self,
        job_type: type,
        args: tuple,
        options: Optional[Mapping] = None,
    ) -> str:
        """Add a new job to the queue.

        Args:
            job_type: Job class to run
            args: Positional job arguments; must be JSON serializable
            options: Optional runtime options. An `at` option (epoch seconds)
                schedules the job instead of making it ready immediately.

        Returns:
            Job ID

        Raises:
            TypeError: If args are not JSON serializable

        Example:
            job_id = queue.enqueue(SendEmail, ("user@example.com",))
        """
        # Round-trip through JSON the way a broker payload would be
        payload = json.loads(json.dumps(list(args)))

        resolved = effective_options(job_type, options)
        scheduled_at = resolved.pop("at", None)

        job = Job(
            id=uuid.uuid4().hex,
            type=job_type.__name__,
            queue=str(resolved.get("queue", settings.default_queue)),
            args=payload,
            options=resolved,
            scheduled_at=scheduled_at,
        )

        if scheduled_at is not None:
            self.scheduled.append(job)
        else:
            self.jobs.append(job)

        logger.info(
            "job_enqueued",
            job_id=job.id,
            job_type=job.type,
            queue=job.queue,
            scheduled_at=scheduled_at,
            source="queue",
        )

        return job.id

    def size(self) -> int:
        """Return the number of ready and scheduled jobs."""
        return len(self.jobs) + len(self.scheduled)

    def clear(self) -> None:
        self.jobs.clear()
        self.scheduled.clear()


_default_queue: Optional[JobQueue] = None


def get_queue() -> JobQueue:
    """Return the process-wide queue, creating it on first use."""
    global _default_queue
    if _default_queue is None:
        _default_queue = JobQueue()
    return _default_queue


def set_queue(queue: Optional[JobQueue]) -> None:
    """Replace the process-wide queue (None resets to a fresh one on next use)."""
    global _default_queue
    _default_queue = queue
