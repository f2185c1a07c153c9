"""
Per-tournament serialization.

All bracket mutations for one tournament run under its lock so a result on
one match cannot race a result on the sibling match feeding the same
downstream slot. Different tournaments never share a lock. Cross-process
safety comes from the store's guarded writes.

The registry holds locks weakly: a lock lives as long as some caller holds
or waits on it, then drops out of the registry.
"""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator

_registry_lock = threading.Lock()
_locks: "weakref.WeakValueDictionary[int, threading.RLock]" = weakref.WeakValueDictionary()


def _lock_for(tournament_id: int) -> threading.RLock:
    with _registry_lock:
        lock = _locks.get(tournament_id)
        if lock is None:
            lock = _locks[tournament_id] = threading.RLock()
        return lock


@contextmanager
def tournament_lock(tournament_id: int) -> Iterator[None]:
    # The local reference keeps the registry entry alive until release
    lock = _lock_for(tournament_id)
    with lock:
        yield
