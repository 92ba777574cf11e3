"""Per-tick coordinator: ingestion channel → conversion → buffers/sinks/events."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import List

from ..analysis.conversion import ConversionResult, DeviceScale, convert_reading
from ..config.calibration import CalibrationParameters, CalibrationStore
from ..dataio.store import NullStore, PersistenceSink, persist_derived, persist_raw
from .channels import Channel, ChannelClosed
from .models import ConversionCompleted, Sample
from .series_buffer import SeriesBuffer
from .tasks import TaskSpawner, ThreadSpawner

__all__ = ["MeasurementPipeline", "TickReport"]

logger = logging.getLogger(__name__)

TIMING_ENV_VAR = "LUXMON_DEBUG"


def tick_timing_requested() -> bool:
    """True when $LUXMON_DEBUG asks for per-tick duration logging."""
    return os.getenv(TIMING_ENV_VAR, "").lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class TickReport:
    """What one :meth:`MeasurementPipeline.tick` processed."""

    processed: int = 0
    substituted: int = 0
    results: List[ConversionResult] = field(default_factory=list)


@dataclass(slots=True)
class MeasurementPipeline:
    """Drain raw samples and fan them out to buffers, sinks, and events.

    ``tick`` runs on the UI thread once per refresh and is the only writer of
    both buffers. All I/O happens elsewhere: persistence goes through
    ``spawner`` as detached tasks, events go onto a channel.
    """

    samples: Channel[Sample]
    events: Channel[ConversionCompleted]
    calibration: CalibrationStore
    raw_buffer: SeriesBuffer = field(default_factory=SeriesBuffer)
    derived_buffer: SeriesBuffer = field(default_factory=SeriesBuffer)
    sink: PersistenceSink = field(default_factory=NullStore)
    spawner: TaskSpawner = field(default_factory=ThreadSpawner)
    scale: DeviceScale = field(default_factory=DeviceScale)
    log_timing: bool = field(default_factory=tick_timing_requested)

    _events_closed_logged: bool = field(init=False, default=False, repr=False)

    def tick(self) -> TickReport:
        """Process every queued sample in arrival order."""
        report = TickReport()
        pending = self.samples.drain()
        if not pending:
            return report

        params = self.calibration.snapshot()
        started = time.perf_counter()
        for raw in pending:
            result = self._process(raw, params)
            report.processed += 1
            report.results.append(result)
            if result.substituted:
                report.substituted += 1

        if self.log_timing:
            logger.debug(
                "tick converted %d samples in %.3f ms",
                report.processed,
                (time.perf_counter() - started) * 1000.0,
            )
        return report

    def _process(self, raw: Sample, params: CalibrationParameters) -> ConversionResult:
        self.raw_buffer.append(raw)

        result = convert_reading(raw.y, params, self.scale)
        self.derived_buffer.append(Sample(x=raw.x, y=result.value))

        self._publish(ConversionCompleted(value=result.value, trace=result.trace))

        self.spawner.spawn(persist_raw, self.sink, raw.y, name="persist-raw")
        self.spawner.spawn(persist_derived, self.sink, result.value, name="persist-derived")
        return result

    def _publish(self, event: ConversionCompleted) -> None:
        try:
            self.events.offer(event)
        except ChannelClosed:
            if not self._events_closed_logged:
                logger.warning("Result event channel closed; continuing without events")
                self._events_closed_logged = True

    def set_buffer_capacity(self, capacity: int) -> None:
        """Resize both buffers; shrinking evicts the oldest samples silently."""
        evicted_raw = self.raw_buffer.set_capacity(capacity)
        evicted_derived = self.derived_buffer.set_capacity(capacity)
        if evicted_raw or evicted_derived:
            logger.debug(
                "Buffer capacity set to %d (evicted %d raw, %d derived)",
                capacity,
                evicted_raw,
                evicted_derived,
            )

    def clear(self) -> None:
        self.raw_buffer.clear()
        self.derived_buffer.clear()
