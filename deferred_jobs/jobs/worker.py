import time
from collections.abc import Mapping
from typing import Any, ClassVar, Optional

from deferred_jobs.config import settings
from deferred_jobs.jobs.interception import dispatch_job, push_job


class Worker:
    """Base class for background job types.

    Subclasses declare their static options in an `options` dict. Options
    are inherited and overridden along the class hierarchy:

        class SendEmail(Worker):
            options = {"queue": "mailers", "lock": "until_executed"}

            def perform(self, user_id):
                ...

    perform_async goes through push_job, so calls made inside defer_jobs()
    are buffered when a filter matches. Scheduled submissions (perform_in,
    perform_at) always go straight to the queue.
    """

    options: ClassVar[dict] = {"retry": True}

    @classmethod
    def get_options(cls) -> dict:
        """Return the declared options merged along the MRO, keys as strings."""
        merged: dict = {"queue": settings.default_queue}
        for klass in reversed(cls.__mro__):
            declared = klass.__dict__.get("options")
            if isinstance(declared, Mapping):
                merged.update({str(key): value for key, value in declared.items()})
        return merged

    @classmethod
    def set(cls, **options: Any) -> "JobSetter":
        """Attach runtime options to the next submission.

        Example:
            SendEmail.set(queue="critical").perform_async(42)
        """
        return JobSetter(cls, options)

    @classmethod
    def perform_async(cls, *args: Any) -> Optional[str]:
        """Enqueue the job, or buffer it inside a matching deferral scope.

        Returns:
            Job ID, or None when the job was deferred
        """
        return push_job(cls, args)

    @classmethod
    def perform_in(cls, seconds: float, *args: Any) -> str:
        """Schedule the job. Scheduled jobs are never deferred."""
        return cls.set().perform_in(seconds, *args)

    @classmethod
    def perform_at(cls, timestamp: float, *args: Any) -> str:
        """Schedule the job. Scheduled jobs are never deferred."""
        return cls.set().perform_at(timestamp, *args)

    def perform(self, *args: Any) -> None:
        raise NotImplementedError(f"{type(self).__name__} must implement perform()")


class JobSetter:
    """A job class bound to runtime options."""

    def __init__(self, job_type: type, options: Mapping) -> None:
        self.job_type = job_type
        self.options = dict(options)

    def set(self, **options: Any) -> "JobSetter":
        return JobSetter(self.job_type, {**self.options, **options})

    def perform_async(self, *args: Any) -> Optional[str]:
        return push_job(self.job_type, args, self.options)

    def perform_in(self, seconds: float, *args: Any) -> str:
        return self.perform_at(time.time() + seconds, *args)

    def perform_at(self, timestamp: float, *args: Any) -> str:
        return dispatch_job(self.job_type, args, {**self.options, "at": timestamp})
