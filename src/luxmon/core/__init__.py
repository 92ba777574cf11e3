"""Core measurement pipeline: buffers, channels, and the per-tick coordinator.

This package sits between the serial ingestion worker and the Qt layer: the
worker feeds a :class:`Channel`, and :class:`MeasurementPipeline` drains it
each tick into the raw/derived :class:`SeriesBuffer` pair, the persistence
sinks, and the result-event channel.
"""

from .channels import Channel, ChannelClosed
from .clock import ProcessClock
from .models import ConversionCompleted, Record, Sample, StatusChanged
from .series_buffer import SeriesBuffer
from .tasks import InlineSpawner, TaskSpawner, ThreadSpawner

# build_pipeline is imported from .pipeline_wiring directly (it depends on ingest)
from .pipeline import MeasurementPipeline, TickReport

__all__ = [
    "Channel",
    "ChannelClosed",
    "ConversionCompleted",
    "InlineSpawner",
    "MeasurementPipeline",
    "ProcessClock",
    "Record",
    "Sample",
    "SeriesBuffer",
    "StatusChanged",
    "TaskSpawner",
    "ThreadSpawner",
    "TickReport",
]
