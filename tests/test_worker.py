"""Tests for job types, the queue client, and the interception seam."""

from __future__ import annotations

import time

import pytest

from deferred_jobs import Settings, defer_jobs
from deferred_jobs.jobs import JobQueue, deferrable, get_queue, set_queue
from deferred_jobs.jobs.context import pending_jobs
from tests.helpers import PriorityEmail, SendEmail, SendSms


class TestWorker:
    """Test option declaration and submission entry points."""

    def test_get_options_defaults(self):
        assert SendEmail.get_options() == {
            "queue": "mailers",
            "retry": True,
        }

    def test_set_returns_bound_setter(self):
        setter = SendEmail.set(queue="critical").set(retry=False)
        assert setter.job_type is SendEmail
        assert setter.options == {"queue": "critical", "retry": False}

    def test_perform_async_returns_job_id(self, queue):
        job_id = PriorityEmail.perform_async(7)
        assert queue.jobs[0].id == job_id
        assert queue.jobs[0].options["priority"] == "high"

    def test_perform_in_schedules(self, queue):
        before = time.time()
        SendEmail.perform_in(60, 1)

        assert queue.jobs == []
        assert queue.scheduled[0].scheduled_at >= before + 60
        assert "at" not in queue.scheduled[0].options

    def test_scheduled_jobs_are_not_deferred(self, queue):
        with defer_jobs():
            SendEmail.perform_in(60, 1)
            SendSms.set(queue="critical").perform_at(1_900_000_000, "hi")

            assert pending_jobs() == ()
            assert [job.args for job in queue.scheduled] == [[1], ["hi"]]

        assert len(queue.scheduled) == 2
        assert queue.scheduled[1].queue == "critical"
        assert queue.scheduled[1].scheduled_at == 1_900_000_000
        assert queue.jobs == []

    def test_perform_is_abstract(self):
        with pytest.raises(NotImplementedError):
            SendEmail().perform(1)


class TestJobQueue:
    """Test the in-memory queue client."""

    def test_rejects_non_json_args(self, queue):
        with pytest.raises(TypeError):
            queue.enqueue(SendEmail, (object(),))
        assert queue.size() == 0

    def test_clear(self, queue):
        queue.enqueue(SendEmail, (1,))
        queue.enqueue(SendEmail, (2,), {"at": 10})
        assert queue.size() == 2
        queue.clear()
        assert queue.size() == 0

    def test_set_queue_none_creates_fresh_queue(self):
        set_queue(None)
        first = get_queue()
        assert isinstance(first, JobQueue)
        assert get_queue() is first


class TestDeferrable:
    """Test wrapping an arbitrary submit callable."""

    def test_wraps_custom_submit(self):
        calls = []

        @deferrable
        def submit(job_type, args, options=None):
            calls.append((job_type, args))
            return "sent"

        assert submit(SendEmail, (1,)) == "sent"
        with defer_jobs(SendSms):
            assert submit(SendSms, (2,)) is None
            assert submit(SendEmail, (3,)) == "sent"
            assert len(pending_jobs()) == 1

        assert calls == [(SendEmail, (1,)), (SendEmail, (3,))]


class TestSettings:
    """Test environment driven configuration."""

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("DEFERRED_JOBS_UNIQUE_LOCK_ENABLED", "true")
        monkeypatch.setenv("DEFERRED_JOBS_DEFAULT_QUEUE", "low")

        config = Settings()

        assert config.unique_lock_enabled is True
        assert config.unique_for_enabled is False
        assert config.default_queue == "low"
