"""Device-side ingestion: serial line protocol and the background reader.

:class:`IngestionWorker` owns the port on its own thread and forwards parsed
readings over channels; it never touches the pipeline buffers.
"""

from .line_protocol import LineAssembler, parse_reading
from .serial_worker import IngestionState, IngestionWorker, open_serial_source

__all__ = [
    "IngestionState",
    "IngestionWorker",
    "LineAssembler",
    "open_serial_source",
    "parse_reading",
]
