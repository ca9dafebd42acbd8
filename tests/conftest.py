"""
Shared fixtures for deferred_jobs tests.

This module provides:
- A fresh in-memory queue for every test
- Toggles for the uniqueness add-ons
- A guard that no deferral state leaks between tests
"""

from __future__ import annotations

import pytest

from deferred_jobs.config import settings
from deferred_jobs.jobs import JobQueue, set_queue
from deferred_jobs.jobs.context import current_state


@pytest.fixture(autouse=True)
def queue():
    """Install a fresh process-wide queue for the test."""
    q = JobQueue()
    set_queue(q)
    yield q
    set_queue(None)


@pytest.fixture(autouse=True)
def no_leaked_state():
    assert current_state() is None
    yield
    assert current_state() is None


@pytest.fixture
def lock_uniqueness(monkeypatch):
    """Enable the lock-based uniqueness add-on."""
    monkeypatch.setattr(settings, "unique_lock_enabled", True)


@pytest.fixture
def enterprise_uniqueness(monkeypatch):
    """Enable the enterprise `unique_for` add-on."""
    monkeypatch.setattr(settings, "unique_for_enabled", True)

