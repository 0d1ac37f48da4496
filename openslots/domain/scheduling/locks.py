"""
Per-provider mutual exclusion for validate-then-commit sequences.

Mutations for one provider run one at a time; different providers never
wait on each other. Locks are held only around the core record mutation,
never around calendar or activity-log calls.
"""

import logging
from contextlib import contextmanager
from functools import lru_cache
from threading import Lock
from typing import Iterable, Iterator

from ...config import get_scheduling_config
from .errors import LockTimeout

logger = logging.getLogger(__name__)


class ProviderLockRegistry:
    def __init__(self, timeout_seconds: float = 10.0):
        self.timeout_seconds = timeout_seconds
        self._locks: dict[int, Lock] = {}
        self._registry_lock = Lock()

    def _lock_for(self, provider_id: int) -> Lock:
        with self._registry_lock:
            lock = self._locks.get(provider_id)
            if lock is None:
                lock = Lock()
                self._locks[provider_id] = lock
            return lock

    @contextmanager
    def hold(self, provider_ids: Iterable[int]) -> Iterator[None]:
        """
        Hold the locks of every given provider.

        Locks are taken in ascending id order so that a reschedule moving an
        appointment between two providers cannot deadlock with its mirror image.
        """
        ordered = sorted({pid for pid in provider_ids if pid is not None})
        acquired: list[Lock] = []
        try:
            for provider_id in ordered:
                lock = self._lock_for(provider_id)
                if not lock.acquire(timeout=self.timeout_seconds):
                    logger.error(f"⏱️ Timed out waiting for provider {provider_id} lock")
                    raise LockTimeout(f"Provider {provider_id} is busy, try again")
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


@lru_cache
def get_provider_locks() -> ProviderLockRegistry:
    """The process-wide registry; every engine that is not handed its own locks shares it"""
    return ProviderLockRegistry(get_scheduling_config().lock_timeout_seconds)
