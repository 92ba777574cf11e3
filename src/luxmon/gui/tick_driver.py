"""QTimer-driven tick loop that bridges the pipeline to the Qt thread."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from ..core.channels import Channel
from ..core.models import ConversionCompleted, StatusChanged
from ..core.pipeline import MeasurementPipeline

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "Waiting for serial connection..."


class TickDriver(QObject):
    """Non-visual controller that runs :meth:`MeasurementPipeline.tick` on a timer.

    Each tick drains the ingestion channel through the pipeline, then drains
    the status and result-event channels and re-emits them as Qt signals for
    whatever view is attached. Plots read the pipeline buffers directly.
    """

    status_changed = Signal(str)
    conversion_completed = Signal(object)  # ConversionCompleted
    tick_finished = Signal(int)

    def __init__(
        self,
        pipeline: MeasurementPipeline,
        status_channel: Channel[StatusChanged],
        event_channel: Channel[ConversionCompleted],
        *,
        interval_ms: int = 33,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._pipeline = pipeline
        self._status_channel = status_channel
        self._event_channel = event_channel
        self._status_text = DEFAULT_STATUS
        self._latest_result: Optional[ConversionCompleted] = None

        self._timer = QTimer(self)
        self._timer.setInterval(max(1, int(interval_ms)))
        self._timer.timeout.connect(self.tick)

    # ------------------------------------------------------------------ state
    @property
    def pipeline(self) -> MeasurementPipeline:
        return self._pipeline

    @property
    def status_text(self) -> str:
        """Latest status message from the ingestion worker."""
        return self._status_text

    @property
    def latest_result(self) -> Optional[ConversionCompleted]:
        return self._latest_result

    def is_running(self) -> bool:
        return self._timer.isActive()

    # --------------------------------------------------------------- control
    @Slot()
    def start(self) -> None:
        self._timer.start()

    @Slot()
    def stop(self) -> None:
        self._timer.stop()

    @Slot()
    def tick(self) -> int:
        report = self._pipeline.tick()

        for status in self._status_channel.drain():
            self._status_text = status.text
            self.status_changed.emit(status.text)

        for event in self._event_channel.drain():
            self._latest_result = event
            self.conversion_completed.emit(event)

        self.tick_finished.emit(report.processed)
        return report.processed

    @Slot(int)
    def set_buffer_capacity(self, capacity: int) -> None:
        self._pipeline.set_buffer_capacity(capacity)

    @Slot()
    def clear(self) -> None:
        """Empty both history buffers (the "clear all data" action)."""
        self._pipeline.clear()
        logger.info("Cleared raw and derived history")
