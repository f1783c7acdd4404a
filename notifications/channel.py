"""
Notification channel: runs email tasks after the surrounding transaction commits,
on a small worker pool so slow mail servers never hold a request or a row lock.
"""
import atexit
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from django.conf import settings
from django.db import transaction

logger = logging.getLogger(__name__)


class NotificationChannel:

    def __init__(self, run_async=True, max_workers=2):
        self.run_async = run_async
        self.max_workers = max_workers
        self._executor = None
        self._lock = threading.Lock()

    def publish(self, func, *args, **kwargs):
        """Queue func(*args, **kwargs) to run once the current transaction commits (immediately outside one)."""
        transaction.on_commit(lambda: self.submit(func, *args, **kwargs))

    def submit(self, func, *args, **kwargs):
        if not self.run_async:
            return self._run(func, args, kwargs)
        return self._get_executor().submit(self._run, func, args, kwargs)

    def shutdown(self, wait=True):
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None

    def _get_executor(self):
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix='notifications'
                )
            return self._executor

    @staticmethod
    def _run(func, args, kwargs):
        name = getattr(func, '__name__', repr(func))
        try:
            return func(*args, **kwargs)
        except Exception:
            logger.exception(f"[EMAIL] Notification task {name} failed")
            return None


_default_channel = None
_default_lock = threading.Lock()


def get_channel():
    """
    Process-wide channel configured from NOTIFICATIONS_ASYNC / NOTIFICATIONS_MAX_WORKERS.
    Its pool is drained at interpreter exit so queued emails are not dropped.
    """
    global _default_channel
    with _default_lock:
        if _default_channel is None:
            _default_channel = NotificationChannel(
                run_async=getattr(settings, 'NOTIFICATIONS_ASYNC', True),
                max_workers=getattr(settings, 'NOTIFICATIONS_MAX_WORKERS', 2),
            )
            atexit.register(_default_channel.shutdown)
        return _default_channel
