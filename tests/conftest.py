from __future__ import annotations

from typing import List

import pytest

from luxmon.core.models import Record
from luxmon.dataio.store import StoreError, utc_now


class MemorySink:
    """In-process sink that records every insert."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.raw: List[Record] = []
        self.derived: List[Record] = []

    def insert_raw(self, value: float) -> None:
        if self.fail:
            raise StoreError("connection refused")
        self.raw.append(Record(value=value, timestamp=utc_now()))

    def insert_derived(self, value: float) -> None:
        if self.fail:
            raise StoreError("connection refused")
        self.derived.append(Record(value=value, timestamp=utc_now()))

    def query_all_raw(self) -> List[Record]:
        return list(self.raw)

    def query_all_derived(self) -> List[Record]:
        return list(self.derived)


class StepClock:
    """Deterministic stand-in for ProcessClock: 0.1 s per call."""

    def __init__(self, step: float = 0.1) -> None:
        self._step = step
        self._calls = 0

    def elapsed(self) -> float:
        self._calls += 1
        return round(self._calls * self._step, 6)


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def step_clock() -> StepClock:
    return StepClock()


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
