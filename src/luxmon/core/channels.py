"""Single-consumer message channels between the worker and the tick loop."""

from __future__ import annotations

import threading
from queue import Empty, Full, Queue
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised by :meth:`Channel.send` once the receiving side has closed."""


class Channel(Generic[T]):
    """Thin wrapper around :class:`queue.Queue` with an explicit close.

    The receiver calls :meth:`close` when it goes away; from then on every
    send raises :class:`ChannelClosed`, which producers treat as a signal to
    stop. ``maxsize=0`` means unbounded.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: Queue[T] = Queue(maxsize=max(0, int(maxsize)))
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, item: T) -> None:
        """Enqueue ``item``; blocks while a bounded channel is full."""
        if self._closed.is_set():
            raise ChannelClosed("receiver closed the channel")
        self._queue.put(item)

    def offer(self, item: T) -> None:
        """Best-effort put that drops the oldest item when the channel is full."""
        if self._closed.is_set():
            raise ChannelClosed("receiver closed the channel")
        try:
            self._queue.put_nowait(item)
        except Full:
            try:
                self._queue.get_nowait()
            except Empty:
                pass
            self._queue.put_nowait(item)

    def try_receive(self) -> Optional[T]:
        """Return the next item, or ``None`` when nothing is queued."""
        try:
            return self._queue.get_nowait()
        except Empty:
            return None

    def drain(self) -> List[T]:
        """Return every queued item in arrival order."""
        items: List[T] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except Empty:
                break
        return items

    def close(self) -> None:
        self._closed.set()

    def __len__(self) -> int:
        return self._queue.qsize()
