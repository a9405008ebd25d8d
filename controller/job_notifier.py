"""In-process wake-up signal between job submission and the worker poll loop."""

import threading


class JobNotifier:
    """
    Counts submissions under a condition variable so a waiting worker wakes
    as soon as a job is queued. Waiting still times out after the poll
    interval, which covers submissions made by other processes.
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._pending = 0

    def notify(self) -> None:
        with self._condition:
            self._pending += 1
            self._condition.notify_all()

    def wait(self, timeout: float) -> bool:
        """
        Block until a submission arrives or timeout elapses.

        Returns:
            True if woken by a submission, False on timeout
        """
        with self._condition:
            if self._pending == 0:
                self._condition.wait(timeout)
            woken = self._pending > 0
            self._pending = 0
            return woken


_default_notifier = JobNotifier()


def get_job_notifier() -> JobNotifier:
    return _default_notifier
