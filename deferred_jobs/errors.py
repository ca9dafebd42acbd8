"""Exceptions raised by the deferred jobs package."""


class DeferredJobsError(Exception):
    """Base class for all deferred jobs errors."""


class InvalidFilterError(DeferredJobsError, ValueError):
    """Raised when a deferral filter term is not a class, mapping, or True."""

    def __init__(self, term: object) -> None:
        self.term = term
        super().__init__(
            f"Invalid job filter {term!r}: expected a job class, "
            "an options mapping, or True"
        )


class DeferralError(DeferredJobsError, RuntimeError):
    """Raised when a job is buffered while no deferral scope is active."""
