"""Mutexes and Mesa-style condition variables.

A condition variable keeps an ordered set of waiting threads. ``signal``
wakes the oldest waiter and ``broadcast`` wakes them all; neither call
blocks, and the woken threads do not preempt the caller.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Optional


class Mutex:
    """A non-reentrant lock providing mutual exclusion."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        """Whether some thread currently holds the mutex."""
        return self._lock.locked()

    def lock(self) -> None:
        """Acquire the mutex, waiting as long as it takes."""
        self._lock.acquire()

    def unlock(self) -> None:
        """Release the mutex; raises ``RuntimeError`` if it is not locked."""
        self._lock.release()

    def __enter__(self) -> Mutex:
        self.lock()
        return self

    def __exit__(self, *args: object) -> None:
        self.unlock()


class CondVar:
    """A condition variable usable with any ``Mutex``."""

    def __init__(self) -> None:
        self._waitset: deque[threading.Event] = deque()
        self._waitset_lock = threading.Lock()

    @property
    def waiting(self) -> int:
        """Number of threads currently asleep on this condition."""
        with self._waitset_lock:
            return len(self._waitset)

    def wait(self, mutex: Mutex) -> bool:
        """Sleep until signalled, releasing ``mutex`` meanwhile.

        The mutex must be held by the caller and is held again on return.
        Returns True if woken by ``signal`` or ``broadcast``.
        """
        return self._wait(mutex, None)

    def timed_wait(self, mutex: Mutex, timeout: int) -> bool:
        """Like ``wait``, but give up after ``timeout`` milliseconds.

        Returns True if woken by ``signal`` or ``broadcast``, False if the
        timeout expired first.
        """
        if timeout < 0:
            raise ValueError("timeout cannot be negative")
        return self._wait(mutex, timeout / 1000.0)

    def signal(self) -> None:
        """Wake exactly one waiting thread, if there is any."""
        with self._waitset_lock:
            if self._waitset:
                self._waitset.popleft().set()

    def broadcast(self) -> None:
        """Wake every waiting thread."""
        with self._waitset_lock:
            while self._waitset:
                self._waitset.popleft().set()

    def _wait(self, mutex: Mutex, timeout: Optional[float]) -> bool:
        event = threading.Event()
        with self._waitset_lock:
            self._waitset.append(event)
        try:
            mutex.unlock()
        except RuntimeError:
            with self._waitset_lock:
                self._waitset.remove(event)
            raise
        try:
            event.wait(timeout)
            with self._waitset_lock:
                woken = event.is_set()
                if not woken:
                    self._waitset.remove(event)
        finally:
            mutex.lock()
        return woken