# backend/slotbook/services/slots/locks.py
"""
Per-key mutual exclusion for slot operations.

LocalKeyLocks: threading locks, one per key, for a single process.
RedisKeyLocks: redis-py locks, for several worker processes sharing one store.

Both expose `hold(name)`, a context manager that raises LockTimeout when the
lock cannot be taken within `timeout` seconds.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Protocol

from redis import Redis
from redis.exceptions import LockError

logger = logging.getLogger(__name__)


class LockTimeout(RuntimeError):
    """Lock for a key was not acquired in time."""


class KeyLocks(Protocol):
    def hold(self, name: str): ...


def slot_lock_name(date: str, time: str) -> str:
    return f"slot:{date}:{time}"


class LocalKeyLocks:
    """In-process lock registry keyed by name."""

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout
        self._locks: dict[str, threading.Lock] = {}
        self._waiters: dict[str, int] = {}
        self._master_lock = threading.Lock()

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        with self._master_lock:
            lock = self._locks.setdefault(name, threading.Lock())
            self._waiters[name] = self._waiters.get(name, 0) + 1

        acquired = lock.acquire(timeout=self.timeout)
        try:
            if not acquired:
                raise LockTimeout(f"Could not acquire lock {name!r} within {self.timeout} seconds")
            yield
        finally:
            if acquired:
                lock.release()
            with self._master_lock:
                self._waiters[name] -= 1
                # Nobody holds or waits on it any more
                if self._waiters[name] == 0:
                    del self._waiters[name]
                    del self._locks[name]

    def __len__(self) -> int:
        return len(self._locks)


class RedisKeyLocks:
    """Redis lock registry; keys live under KEY_PREFIX."""

    KEY_PREFIX = "slotbook:lock"

    def __init__(self, redis: Redis, timeout: float = 10.0, lease_seconds: float = 30.0):
        self.redis = redis
        self.timeout = timeout
        self.lease_seconds = lease_seconds

    def _key(self, name: str) -> str:
        return f"{self.KEY_PREFIX}:{name}"

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        lock = self.redis.lock(
            self._key(name),
            timeout=self.lease_seconds,
            blocking_timeout=self.timeout,
        )
        if not lock.acquire():
            raise LockTimeout(f"Could not acquire lock {name!r} within {self.timeout} seconds")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                logger.warning("Lock %s expired before release (lease %ss)", name, self.lease_seconds)
