"""
Allocation guard.

phpIPAM's first-free allocation is not atomic with the hostname check that
precedes it, so two concurrent creates in one process could both see a
hostname as free or race for the same address. The guard serializes that
critical section.

The guard is a plain object handed to the lifecycle; every lifecycle
instance can own its own guard.
"""

import threading
from contextlib import contextmanager

from phpipam_provider.models.enums import LockPolicy


class AllocationGuard:
    """
    One lock for every allocation.

    Blocking, no timeout, not re-entrant. ``hold(key)`` ignores the key so
    the global and sharded guards are interchangeable.
    """

    policy = LockPolicy.GLOBAL

    def __init__(self):
        self._lock = threading.Lock()

    @contextmanager
    def hold(self, key: str | None = None):
        with self._lock:
            yield

    @property
    def locked(self) -> bool:
        return self._lock.locked()


class SubnetAllocationGuard(AllocationGuard):
    """
    One lock per key.

    The lifecycle holds a ``hostname:<name>`` key for the whole create and a
    ``subnet:<id>`` key inside it, so different hostnames in different
    subnets allocate in parallel while one hostname never allocates twice.
    """

    policy = LockPolicy.SUBNET

    def __init__(self):
        super().__init__()
        # key -> lock; self._lock only protects this table
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: str | None = None):
        if key is None:
            raise ValueError("Sharded guard requires a key")
        with self._lock_for(key):
            yield

    @property
    def locked(self) -> bool:
        with self._lock:
            return any(lock.locked() for lock in self._locks.values())


def make_guard(policy: LockPolicy | str = LockPolicy.GLOBAL) -> AllocationGuard:
    """Build the guard for a configured lock policy."""
    match LockPolicy(policy):
        case LockPolicy.SUBNET:
            return SubnetAllocationGuard()
        case _:
            return AllocationGuard()
