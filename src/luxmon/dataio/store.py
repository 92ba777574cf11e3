"""Persistence sink contract and the fire-and-forget request helpers."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Protocol

from ..core.models import Record

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Connection or write/query failure reported by a sink."""


class PersistenceSink(Protocol):
    """Append/query store for raw readings and derived lux values.

    Every call owns its own connection; implementations raise
    :class:`StoreError` on failure.
    """

    def insert_raw(self, value: float) -> None:  # pragma: no cover - protocol
        ...

    def insert_derived(self, value: float) -> None:  # pragma: no cover - protocol
        ...

    def query_all_raw(self) -> List[Record]:  # pragma: no cover - protocol
        ...

    def query_all_derived(self) -> List[Record]:  # pragma: no cover - protocol
        ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class NullStore:
    """No-op sink used when storage is disabled."""

    def insert_raw(self, value: float) -> None:  # pragma: no cover - trivial
        return

    def insert_derived(self, value: float) -> None:  # pragma: no cover - trivial
        return

    def query_all_raw(self) -> List[Record]:
        return []

    def query_all_derived(self) -> List[Record]:
        return []


def persist_raw(sink: PersistenceSink, value: float) -> bool:
    """Write one raw reading; failures are logged and the request dropped."""
    try:
        sink.insert_raw(value)
    except StoreError as exc:
        logger.warning("Failed to store raw reading %.2f: %s", value, exc)
        return False
    return True


def persist_derived(sink: PersistenceSink, value: float) -> bool:
    """Write one converted value; failures are logged and the request dropped."""
    try:
        sink.insert_derived(value)
    except StoreError as exc:
        logger.warning("Failed to store derived value %.8f: %s", value, exc)
        return False
    return True
