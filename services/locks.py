"""Per-key mutual exclusion for session mutations."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class _KeyLock:  # Lock plus the number of threads holding or waiting on it
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


_LOCKS: Dict[str, _KeyLock] = {}
_LOCKS_GUARD = threading.Lock()


@contextmanager
def _hold(key: str) -> Iterator[None]:
    """Hold the lock for ``key``; the entry is dropped once nobody uses it."""

    with _LOCKS_GUARD:
        entry = _LOCKS.get(key)
        if entry is None:
            entry = _LOCKS[key] = _KeyLock()
        entry.users += 1
    try:
        with entry.lock:
            yield
    finally:
        with _LOCKS_GUARD:
            entry.users -= 1
            if entry.users == 0:
                del _LOCKS[key]


@contextmanager
def session_lock(session_id: str) -> Iterator[None]:
    """Hold the single-writer lock for ``session_id``."""

    with _hold(f"session:{session_id}"):
        yield


@contextmanager
def candidate_lock(candidate_id: str) -> Iterator[None]:
    with _hold(f"candidate:{candidate_id}"):
        yield


def held_lock_count() -> int:
    """Number of keys currently locked or awaited."""

    with _LOCKS_GUARD:
        return len(_LOCKS)


__all__ = ["session_lock", "candidate_lock", "held_lock_count"]
