from __future__ import annotations

import logging
import math
import threading
import time

import serial

from conftest import MemorySink
from luxmon.analysis.conversion import convert_reading
from luxmon.config import CalibrationParameters, CalibrationStore, LuxmonConfig
from luxmon.core.channels import Channel
from luxmon.core.models import ConversionCompleted, Sample
from luxmon.core.pipeline import MeasurementPipeline
from luxmon.core.pipeline_wiring import build_pipeline
from luxmon.core.series_buffer import SeriesBuffer
from luxmon.core.tasks import InlineSpawner, ThreadSpawner
from luxmon.ingest.serial_worker import IngestionState


class CountingSpawner:
    def __init__(self) -> None:
        self.names: list[str] = []

    def spawn(self, task, *args, name=None) -> None:
        self.names.append(name)


def _pipeline(sink, spawner=None, capacity: int = 300):
    samples: Channel[Sample] = Channel()
    events: Channel[ConversionCompleted] = Channel()
    pipeline = MeasurementPipeline(
        samples=samples,
        events=events,
        calibration=CalibrationStore(CalibrationParameters()),
        raw_buffer=SeriesBuffer(capacity),
        derived_buffer=SeriesBuffer(capacity),
        sink=sink,
        spawner=spawner or InlineSpawner(),
    )
    return pipeline, samples, events


def test_tick_processes_samples_in_order(memory_sink: MemorySink) -> None:
    pipeline, samples, events = _pipeline(memory_sink)
    for i, raw in enumerate([100.0, 200.0, 300.0]):
        samples.send(Sample(x=0.1 * (i + 1), y=raw))

    report = pipeline.tick()

    assert report.processed == 3
    assert report.substituted == 0
    raw_snap = pipeline.raw_buffer.snapshot()
    derived_snap = pipeline.derived_buffer.snapshot()
    assert [s.y for s in raw_snap] == [100.0, 200.0, 300.0]
    assert [s.x for s in derived_snap] == [s.x for s in raw_snap]

    expected = [convert_reading(raw, CalibrationParameters()).value for raw in (100.0, 200.0, 300.0)]
    assert [s.y for s in derived_snap] == expected
    assert derived_snap[0].y < derived_snap[1].y < derived_snap[2].y

    published = events.drain()
    assert [e.value for e in published] == expected
    assert all(e.trace[0] == 1.0 for e in published)

    assert [r.value for r in memory_sink.raw] == [100.0, 200.0, 300.0]
    assert [r.value for r in memory_sink.derived] == expected


def test_empty_tick_is_a_no_op(memory_sink: MemorySink) -> None:
    pipeline, _, events = _pipeline(memory_sink)
    report = pipeline.tick()
    assert report.processed == 0
    assert len(pipeline.raw_buffer) == 0
    assert len(events) == 0


def test_store_failures_do_not_stop_the_tick(caplog) -> None:
    sink = MemorySink(fail=True)
    pipeline, samples, events = _pipeline(sink)
    samples.send(Sample(0.1, 100.0))
    samples.send(Sample(0.2, 200.0))

    with caplog.at_level(logging.WARNING, logger="luxmon.dataio.store"):
        report = pipeline.tick()

    assert report.processed == 2
    assert len(pipeline.derived_buffer) == 2
    assert len(events) == 2
    assert "Failed to store raw reading" in caplog.text
    assert "Failed to store derived value" in caplog.text


def test_closed_event_channel_still_fills_buffers(memory_sink: MemorySink, caplog) -> None:
    pipeline, samples, events = _pipeline(memory_sink)
    events.close()
    for raw in (10.0, 20.0, 30.0):
        samples.send(Sample(raw / 100.0, raw))

    with caplog.at_level(logging.WARNING, logger="luxmon.core.pipeline"):
        pipeline.tick()

    assert len(pipeline.raw_buffer) == 3
    assert len(pipeline.derived_buffer) == 3
    assert len(memory_sink.derived) == 3
    assert caplog.text.count("Result event channel closed") == 1


def test_two_persistence_tasks_per_sample(memory_sink: MemorySink) -> None:
    spawner = CountingSpawner()
    pipeline, samples, _ = _pipeline(memory_sink, spawner=spawner)
    for raw in (1.0, 2.0):
        samples.send(Sample(raw, raw))

    pipeline.tick()

    assert spawner.names == ["persist-raw", "persist-derived"] * 2
    # tasks were only scheduled, never run
    assert memory_sink.raw == []


def test_substituted_values_are_counted(memory_sink: MemorySink) -> None:
    pipeline, samples, _ = _pipeline(memory_sink)
    pipeline.calibration.update(model_b=500.0)
    samples.send(Sample(0.1, 100.0))

    report = pipeline.tick()

    assert report.substituted == 1
    assert pipeline.derived_buffer.latest() == Sample(0.1, 0.0)


def test_calibration_change_applies_on_next_tick(memory_sink: MemorySink) -> None:
    pipeline, samples, _ = _pipeline(memory_sink)
    samples.send(Sample(0.1, 100.0))
    first = pipeline.tick().results[0].value

    pipeline.calibration.update(model_a=0.0002)
    samples.send(Sample(0.2, 100.0))
    second = pipeline.tick().results[0].value

    assert second < first


def test_capacity_and_clear(memory_sink: MemorySink) -> None:
    pipeline, samples, _ = _pipeline(memory_sink, capacity=5)
    for i in range(5):
        samples.send(Sample(float(i), 100.0 + i))
    pipeline.tick()

    pipeline.set_buffer_capacity(2)
    assert [s.x for s in pipeline.raw_buffer] == [3.0, 4.0]
    assert [s.x for s in pipeline.derived_buffer] == [3.0, 4.0]

    pipeline.clear()
    assert len(pipeline.raw_buffer) == 0 and len(pipeline.derived_buffer) == 0
    assert pipeline.raw_buffer.capacity == 2


class ScriptedPort:
    def __init__(self, chunks) -> None:
        self._chunks = list(chunks)
        self.closed = False

    def read(self, size: int = 1) -> bytes:
        if not self._chunks:
            raise serial.SerialException("device disconnected")
        return self._chunks.pop(0)

    def close(self) -> None:
        self.closed = True


def test_build_pipeline_end_to_end(memory_sink: MemorySink, step_clock) -> None:
    port = ScriptedPort([b"100\r\n200\r\n", b"oops\r\n300\r\n"])
    cfg = LuxmonConfig(buffer_capacity=2, poll_interval_ms=0.0, storage_backend="none")
    handles = build_pipeline(
        cfg,
        sink=memory_sink,
        spawner=InlineSpawner(),
        clock=step_clock,
        opener=lambda p, b, t: port,
    )

    assert handles.worker.run() is IngestionState.DISCONNECTED
    report = handles.pipeline.tick()

    assert report.processed == 3
    assert [s.y for s in handles.pipeline.raw_buffer] == [200.0, 300.0]
    assert [s.x for s in handles.pipeline.derived_buffer] == [0.2, 0.3]
    assert len(memory_sink.raw) == 3
    assert all(math.isfinite(s.y) for s in handles.pipeline.derived_buffer)

    texts = [m.text for m in handles.status_channel.drain()]
    assert "Parse error: 'oops'" in texts
    assert len(handles.event_channel.drain()) == 3


class GatedSink(MemorySink):
    """Holds every write until ``gate`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = threading.Event()
        self.raw_written = threading.Event()
        self.derived_written = threading.Event()

    def insert_raw(self, value: float) -> None:
        self.gate.wait(timeout=5.0)
        super().insert_raw(value)
        self.raw_written.set()

    def insert_derived(self, value: float) -> None:
        self.gate.wait(timeout=5.0)
        super().insert_derived(value)
        self.derived_written.set()


def test_thread_spawner_keeps_slow_writes_off_the_tick() -> None:
    sink = GatedSink()
    pipeline, samples, _ = _pipeline(sink, spawner=ThreadSpawner(name_prefix="test-persist"))
    samples.send(Sample(0.1, 100.0))

    started = time.perf_counter()
    report = pipeline.tick()
    elapsed = time.perf_counter() - started

    assert report.processed == 1
    assert elapsed < 1.0
    assert len(pipeline.derived_buffer) == 1
    assert sink.raw == [] and sink.derived == []

    sink.gate.set()
    assert sink.raw_written.wait(timeout=5.0)
    assert sink.derived_written.wait(timeout=5.0)
    assert [r.value for r in sink.raw] == [100.0]
    assert [r.value for r in sink.derived] == [report.results[0].value]


def test_tick_duration_logged_when_timing_enabled(memory_sink: MemorySink, caplog) -> None:
    pipeline, samples, _ = _pipeline(memory_sink)
    pipeline.log_timing = True
    samples.send(Sample(0.1, 100.0))
    samples.send(Sample(0.2, 200.0))

    with caplog.at_level(logging.DEBUG, logger="luxmon.core.pipeline"):
        pipeline.tick()

    assert "tick converted 2 samples in" in caplog.text


def test_timing_flag_follows_environment(monkeypatch, memory_sink: MemorySink) -> None:
    monkeypatch.setenv("LUXMON_DEBUG", "1")
    assert _pipeline(memory_sink)[0].log_timing
    monkeypatch.setenv("LUXMON_DEBUG", "off")
    assert not _pipeline(memory_sink)[0].log_timing
