"""Per-thread deferral state.

The state lives in a ContextVar, so every thread (and every asyncio task
started from a fresh context) has its own buffer and filter stack.
"""

from collections.abc import Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Iterator, Optional

import structlog

from deferred_jobs.errors import DeferralError
from deferred_jobs.jobs.buffer import DeferredJob, Dispatch, JobBuffer
from deferred_jobs.jobs.filters import MATCH_ALL, JobFilter

logger = structlog.get_logger()


@dataclass(frozen=True)
class DeferralState:
    """Buffer shared by all nested scopes plus their filters, innermost last.

    Each scope entry sets a new state holding the same buffer, so a context
    copied into another asyncio task never sees filters pushed or popped
    after the copy.
    """
    buffer: JobBuffer = field(default_factory=JobBuffer)
    filters: tuple = ()

    @property
    def depth(self) -> int:
        return len(self.filters)


_DEFERRAL_STATE: ContextVar[Optional[DeferralState]] = ContextVar(
    "deferred_jobs_state",
    default=None,
)


def current_state() -> Optional[DeferralState]:
    """Return the active deferral state, or None outside any scope.

    A state whose buffer was closed by its outermost scope is inactive. Tasks
    that copied the context while that scope was open see such a state.
    """
    state = _DEFERRAL_STATE.get()
    if state is None or state.buffer.closed:
        return None
    return state


@contextmanager
def defer(job_filter: JobFilter, dispatch: Dispatch) -> Iterator[DeferralState]:
    """Buffer matching job submissions until the outermost scope exits.

    Args:
        job_filter: Filter selecting which submissions are buffered
        dispatch: Callable used to submit buffered jobs on final flush

    Yields:
        The active DeferralState

    Note:
        The previous state is always restored. When that leaves no scope the
        state is cleared before flushing, so dispatches made by the flush go
        straight to the queue. A flush failure propagates out of the with
        block.
    """
    outer = current_state()
    if outer is None:
        state = DeferralState(filters=(job_filter,))
    else:
        state = DeferralState(buffer=outer.buffer, filters=outer.filters + (job_filter,))
    token = _DEFERRAL_STATE.set(state)
    logger.debug("deferral_scope_entered", depth=state.depth, source="context")

    try:
        yield state
    finally:
        _DEFERRAL_STATE.reset(token)
        logger.debug("deferral_scope_exited", depth=state.depth - 1, source="context")

        if outer is None:
            state.buffer.closed = True
            state.buffer.flush(MATCH_ALL, dispatch)


@contextmanager
def undeferred() -> Iterator[None]:
    """Disable deferral inside the block, restoring the outer state after."""
    token = _DEFERRAL_STATE.set(None)
    try:
        yield
    finally:
        _DEFERRAL_STATE.reset(token)


def is_deferred(job_type: type, options: Optional[Mapping] = None) -> bool:
    """Return True if any active scope's filter matches the job."""
    state = current_state()
    if state is None:
        return False
    return any(f.match(job_type, options) for f in state.filters)


def defer_job(job_type: type, args: tuple, options: Optional[Mapping] = None) -> None:
    """Append a job to the active buffer.

    Raises:
        DeferralError: If no deferral scope is active
    """
    state = current_state()
    if state is None:
        raise DeferralError(
            f"Cannot defer {job_type.__name__}: no deferral scope is active"
        )
    state.buffer.append(
        DeferredJob(
            job_type=job_type,
            args=tuple(args),
            options=dict(options) if options is not None else None,
        )
    )


def abort(job_filter: JobFilter) -> int:
    """Discard buffered jobs matching the filter; returns how many."""
    state = current_state()
    if state is None:
        return 0
    return state.buffer.remove_matching(job_filter)


def force_flush(job_filter: JobFilter, dispatch: Dispatch) -> int:
    """Dispatch buffered jobs matching the filter without leaving the scope."""
    state = current_state()
    if state is None:
        return 0
    with undeferred():
        return state.buffer.flush(job_filter, dispatch)


def pending_jobs() -> tuple:
    """Snapshot of the jobs currently buffered in this context."""
    state = current_state()
    if state is None:
        return ()
    return tuple(state.buffer)
