"""Factory helpers that wire a :class:`MeasurementPipeline` from configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..analysis.conversion import DeviceScale
from ..config import CalibrationStore, LuxmonConfig
from ..dataio.store import NullStore, PersistenceSink
from ..ingest.serial_worker import IngestionWorker, SourceOpener, open_serial_source
from .channels import Channel
from .clock import ProcessClock
from .models import ConversionCompleted, Sample, StatusChanged
from .pipeline import MeasurementPipeline
from .series_buffer import SeriesBuffer
from .tasks import TaskSpawner, ThreadSpawner


@dataclass(slots=True)
class PipelineHandles:
    """Return value from :func:`build_pipeline` containing ready-to-use pieces."""

    pipeline: MeasurementPipeline
    worker: IngestionWorker
    sample_channel: Channel[Sample]
    status_channel: Channel[StatusChanged]
    event_channel: Channel[ConversionCompleted]
    calibration: CalibrationStore
    clock: ProcessClock


def build_pipeline(
    cfg: LuxmonConfig,
    *,
    sink: Optional[PersistenceSink] = None,
    spawner: Optional[TaskSpawner] = None,
    clock: Optional[ProcessClock] = None,
    opener: SourceOpener = open_serial_source,
) -> PipelineHandles:
    """
    Build the coordinator and its (not yet started) ingestion worker.

    Parameters
    ----------
    cfg:
        Runtime configuration (usually loaded from YAML).
    sink:
        Persistence sink. Defaults to :class:`NullStore` (nothing stored).
    spawner:
        Task spawner for persistence requests; a :class:`ThreadSpawner` when
        omitted.
    clock:
        Shared elapsed-time base. Created here when omitted.
    opener:
        Callable opening the device; swap it to feed a fake port.
    """
    normalized = cfg.sanitized()
    clock = clock or ProcessClock()

    sample_channel: Channel[Sample] = Channel()
    status_channel: Channel[StatusChanged] = Channel()
    event_channel: Channel[ConversionCompleted] = Channel(maxsize=normalized.event_queue_size)
    calibration = CalibrationStore(normalized.calibration())

    pipeline = MeasurementPipeline(
        samples=sample_channel,
        events=event_channel,
        calibration=calibration,
        raw_buffer=SeriesBuffer(normalized.buffer_capacity),
        derived_buffer=SeriesBuffer(normalized.buffer_capacity),
        sink=sink or NullStore(),
        spawner=spawner or ThreadSpawner(name_prefix="luxmon-persist"),
        scale=DeviceScale(
            max_voltage=normalized.device_max_voltage,
            full_scale=normalized.device_full_scale,
        ),
    )

    worker = IngestionWorker(
        normalized.serial_port,
        normalized.baud_rate,
        sample_channel,
        status_channel,
        clock,
        read_timeout_s=normalized.read_timeout_ms / 1000.0,
        poll_interval_s=normalized.poll_interval_ms / 1000.0,
        opener=opener,
    )

    return PipelineHandles(
        pipeline=pipeline,
        worker=worker,
        sample_channel=sample_channel,
        status_channel=status_channel,
        event_channel=event_channel,
        calibration=calibration,
        clock=clock,
    )


__all__ = ["PipelineHandles", "build_pipeline"]
