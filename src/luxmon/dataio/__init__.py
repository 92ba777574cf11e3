"""Persistence sinks for raw readings and converted values.

- :mod:`store` defines the sink contract, :class:`StoreError`, and the
  ``persist_*`` helpers run as detached tasks.
- :mod:`mongo_store` writes to MongoDB collections.
- :mod:`csv_store` appends to local CSV files.
"""

from __future__ import annotations

from pathlib import Path

from ..config.runtime import LuxmonConfig
from .csv_store import CsvSink
from .mongo_store import MongoSink
from .store import NullStore, PersistenceSink, StoreError, persist_derived, persist_raw


def open_sink(cfg: LuxmonConfig) -> PersistenceSink:
    """Return the sink selected by ``cfg.storage_backend``."""
    backend = cfg.storage_backend
    if backend == "mongo":
        return MongoSink(cfg.mongo_uri, cfg.mongo_database, timeout_ms=cfg.mongo_timeout_ms)
    if backend == "csv":
        return CsvSink(Path(cfg.csv_dir))
    return NullStore()


__all__ = [
    "CsvSink",
    "MongoSink",
    "NullStore",
    "PersistenceSink",
    "StoreError",
    "open_sink",
    "persist_derived",
    "persist_raw",
]
