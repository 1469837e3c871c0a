"""A thread-safe FIFO queue."""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, TypeVar

T = TypeVar("T")


class ConcurrentQueue(Generic[T]):
    """FIFO queue whose operations are guarded by a lock."""

    def __init__(self) -> None:
        self._queue: deque[T] = deque()
        self._lock = threading.Lock()

    def empty(self) -> bool:
        with self._lock:
            return not self._queue

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def push(self, value: T) -> None:
        with self._lock:
            self._queue.append(value)

    def pop(self) -> T:
        """Remove and return the oldest value; raise IndexError when empty."""
        with self._lock:
            if not self._queue:
                raise IndexError("pop from an empty queue")
            return self._queue.popleft()