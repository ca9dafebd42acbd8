"""Job classes and helpers shared by the test suite."""

from deferred_jobs.jobs import JobQueue, Worker


class Notifiable:
    """Mixin marking jobs that send notifications."""


class SendEmail(Worker):
    options = {"queue": "mailers"}


class SendSms(Notifiable, Worker):
    options = {"queue": "sms", "retry": 3}


class PriorityEmail(SendEmail):
    options = {"priority": "high"}


class RebuildIndex(Worker):
    options = {"lock": "until_executed"}


class WarmCache(Worker):
    options = {"unique_for": 3600}


class ExportReport(Worker):
    options = {"lock": "while_executing"}


class UnlockedRebuild(RebuildIndex):
    options = {"lock": False}


def enqueued(queue: JobQueue) -> list:
    """Return (job type name, args) pairs of ready jobs, in enqueue order."""
    return [(job.type, job.args) for job in queue.jobs]
