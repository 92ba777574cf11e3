"""Task spawning used for fire-and-forget persistence requests.

The coordinator only sees :class:`TaskSpawner`, so a queued or retrying
policy can replace :class:`ThreadSpawner` without touching the pipeline.
"""

from __future__ import annotations

import itertools
import threading
from typing import Any, Callable, Optional, Protocol

Task = Callable[..., Any]


class TaskSpawner(Protocol):
    def spawn(self, task: Task, *args: Any, name: Optional[str] = None) -> None:  # pragma: no cover - protocol
        ...


class ThreadSpawner:
    """Run every task on its own detached daemon thread.

    There is no pooling, timeout, or retry: a slow task simply outlives the
    tick that created it.
    """

    def __init__(self, name_prefix: str = "luxmon-task") -> None:
        self._name_prefix = name_prefix
        self._counter = itertools.count(1)

    def spawn(self, task: Task, *args: Any, name: Optional[str] = None) -> None:
        thread = threading.Thread(
            target=task,
            args=args,
            name=name or f"{self._name_prefix}-{next(self._counter)}",
            daemon=True,
        )
        thread.start()


class InlineSpawner:
    """Run tasks synchronously in the caller's thread (tests, offline replay)."""

    def __init__(self) -> None:
        self.spawned = 0

    def spawn(self, task: Task, *args: Any, name: Optional[str] = None) -> None:
        self.spawned += 1
        task(*args)
