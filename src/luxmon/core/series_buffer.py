"""Capacity-bounded, thread-safe history of ``(x, y)`` samples."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterable, Iterator
from typing import Deque, List, Optional

import numpy as np

from .models import Sample

DEFAULT_CAPACITY = 300


class SeriesBuffer:
    """FIFO store of :class:`Sample` objects backing one live chart.

    The tick loop appends while plotting code takes snapshots, so every
    operation runs under a short-lived RLock. Index 0 is always the oldest
    sample; when ``len > capacity`` the front is evicted.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, samples: Iterable[Sample] = ()) -> None:
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self._capacity = int(capacity)
        self._values: Deque[Sample] = deque()
        self._lock = threading.RLock()
        for sample in samples:
            self.append(sample)

    @property
    def capacity(self) -> int:
        with self._lock:
            return self._capacity

    def append(self, sample: Sample) -> None:
        """Append ``sample`` and evict the oldest entries beyond capacity."""
        with self._lock:
            self._values.append(sample)
            self._truncate()

    def set_capacity(self, capacity: int) -> int:
        """Change the capacity, evicting from the front when shrinking.

        Returns the number of evicted samples.
        """
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        with self._lock:
            before = len(self._values)
            self._capacity = int(capacity)
            self._truncate()
            return before - len(self._values)

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def snapshot(self) -> List[Sample]:
        """Return a copy of the logical contents, oldest first."""
        with self._lock:
            return list(self._values)

    def latest(self) -> Optional[Sample]:
        """Return the newest sample, or ``None`` if the buffer is empty."""
        with self._lock:
            if not self._values:
                return None
            return self._values[-1]

    def as_arrays(self) -> tuple[np.ndarray, np.ndarray]:
        """Return ``(x, y)`` as ``float64`` arrays ready for a plot item."""
        data = self.snapshot()
        count = len(data)
        if count == 0:
            return np.empty(0, dtype=np.float64), np.empty(0, dtype=np.float64)
        xs = np.fromiter((sample.x for sample in data), dtype=np.float64, count=count)
        ys = np.fromiter((sample.y for sample in data), dtype=np.float64, count=count)
        return xs, ys

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.snapshot())

    def _truncate(self) -> None:
        while len(self._values) > self._capacity:
            self._values.popleft()
