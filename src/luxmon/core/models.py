"""Shared dataclasses for samples, stored records, and pipeline events."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Sample:
    """One ``(time, value)`` point of the raw or derived stream.

    ``x`` is elapsed seconds since process start; ``y`` is the measured or
    converted value.
    """

    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Record:
    value: float
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class ConversionCompleted:
    """Result event for the presentation layer (display only)."""

    value: float
    trace: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class StatusChanged:
    text: str
