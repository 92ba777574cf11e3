"""Background worker that reads photodiode lines from a serial port."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, Optional, Protocol

import serial

from ..core.channels import Channel, ChannelClosed
from ..core.clock import ProcessClock
from ..core.models import Sample, StatusChanged
from .line_protocol import LineAssembler, parse_reading

logger = logging.getLogger(__name__)

DEFAULT_READ_SIZE = 256


class IngestionState(enum.Enum):
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    FAILED = "failed"


class ByteSource(Protocol):
    """What the worker needs from a port; :class:`serial.Serial` fits."""

    def read(self, size: int = 1) -> bytes:  # pragma: no cover - protocol
        ...

    def close(self) -> None:  # pragma: no cover - protocol
        ...


SourceOpener = Callable[[str, int, float], ByteSource]


def open_serial_source(port: str, baud_rate: int, timeout_s: float) -> ByteSource:
    """Open ``port`` with pyserial; reads return ``b""`` after ``timeout_s``."""
    return serial.Serial(port=port, baudrate=baud_rate, timeout=timeout_s)


class _StatusChannelClosed(Exception):
    pass


class IngestionWorker:
    """Owns the device connection and forwards parsed samples.

    The worker never touches shared buffers; it only sends :class:`Sample`
    objects on ``samples`` and :class:`StatusChanged` messages on ``status``.
    ``FAILED`` and ``DISCONNECTED`` are terminal: recovering requires a new
    worker. A closed channel on either side ends the loop.
    """

    def __init__(
        self,
        port: str,
        baud_rate: int,
        samples: Channel[Sample],
        status: Channel[StatusChanged],
        clock: ProcessClock,
        *,
        read_timeout_s: float = 0.03,
        poll_interval_s: float = 0.01,
        read_size: int = DEFAULT_READ_SIZE,
        opener: SourceOpener = open_serial_source,
    ) -> None:
        self._port = port
        self._baud_rate = int(baud_rate)
        self._samples = samples
        self._status = status
        self._clock = clock
        self._read_timeout_s = max(0.001, float(read_timeout_s))
        self._poll_interval_s = max(0.0, float(poll_interval_s))
        self._read_size = max(1, int(read_size))
        self._opener = opener
        self._assembler = LineAssembler()
        self._stop_event = threading.Event()
        self._state = IngestionState.CONNECTING
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> IngestionState:
        return self._state

    # ----------------------------------------------------------------- control
    def start(self, *, thread_name: Optional[str] = None) -> threading.Thread:
        """Run :meth:`run` on a daemon thread and return it."""
        if self._thread is not None:
            raise RuntimeError("IngestionWorker already started")
        self._thread = threading.Thread(
            target=self.run,
            name=thread_name or f"LuxmonIngest({self._port})",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def stop(self, *, join: bool = False, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if join and self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # -------------------------------------------------------------------- loop
    def run(self) -> IngestionState:
        """Blocking state machine; returns the state the worker ended in."""
        try:
            self._run()
        except _StatusChannelClosed:
            logger.info("Status channel closed; ingestion worker for %s exiting", self._port)
        return self._state

    def _run(self) -> None:
        self._state = IngestionState.CONNECTING
        self._emit(f"Opening port {self._port}...")
        try:
            source = self._opener(self._port, self._baud_rate, self._read_timeout_s)
        except (serial.SerialException, OSError, ValueError) as exc:
            self._state = IngestionState.FAILED
            logger.error("Failed to open %s: %s", self._port, exc)
            self._emit(f"Failed to open port {self._port}: {exc}")
            self._emit("Make sure no other program (e.g. a serial monitor) is using the port.")
            return

        self._state = IngestionState.CONNECTED
        try:
            self._emit(f"Connected to {self._port} ({self._baud_rate} bps)")
            self._read_loop(source)
        finally:
            try:
                source.close()
            except (serial.SerialException, OSError) as exc:
                logger.debug("Error closing %s: %s", self._port, exc)

    def _read_loop(self, source: ByteSource) -> None:
        while not self._stop_event.is_set():
            try:
                chunk = source.read(self._read_size)
            except TimeoutError:
                chunk = b""
            except (serial.SerialException, OSError) as exc:
                self._state = IngestionState.DISCONNECTED
                logger.error("Serial read error on %s: %s", self._port, exc)
                self._emit(f"Serial read error: {exc}")
                return

            for line in self._assembler.feed(chunk):
                if not self._handle_line(line):
                    return

            if self._poll_interval_s > 0.0:
                self._stop_event.wait(self._poll_interval_s)

    def _handle_line(self, line: str) -> bool:
        """Parse and forward one line; ``False`` means the worker must stop."""
        text = line.strip()
        value = parse_reading(text)
        if value is None:
            logger.warning("Dropping malformed reading %r", text)
            self._emit(f"Parse error: '{text}'")
            return True

        self._emit(f"Reading received: {value:.2f}")
        try:
            self._samples.send(Sample(x=self._clock.elapsed(), y=value))
        except ChannelClosed:
            logger.info("Sample channel closed; ingestion worker for %s exiting", self._port)
            self._emit("Sample channel closed.")
            return False
        return True

    def _emit(self, text: str) -> None:
        try:
            self._status.send(StatusChanged(text))
        except ChannelClosed as exc:
            raise _StatusChannelClosed() from exc
