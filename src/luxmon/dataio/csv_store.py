"""CSV-file sink: one append-only file per stream."""

from __future__ import annotations

import csv
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import List

from ..core.models import Record
from .store import StoreError, utc_now

logger = logging.getLogger(__name__)

HEADERS = ("timestamp", "value")


class CsvSink:
    """
    Append readings to ``raw.csv`` and ``derived.csv`` under ``directory``.

    Persistence tasks run on many threads, so appends to the same directory
    are serialized with a lock.
    """

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory).expanduser()
        self.raw_path = self.directory / "raw.csv"
        self.derived_path = self.directory / "derived.csv"
        self._lock = threading.Lock()

    def insert_raw(self, value: float) -> None:
        self._append(self.raw_path, value)

    def insert_derived(self, value: float) -> None:
        self._append(self.derived_path, value)

    def query_all_raw(self) -> List[Record]:
        return self._read(self.raw_path)

    def query_all_derived(self) -> List[Record]:
        return self._read(self.derived_path)

    def _append(self, path: Path, value: float) -> None:
        row = (utc_now().isoformat(), repr(float(value)))
        with self._lock:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                is_new = not path.exists() or path.stat().st_size == 0
                with path.open("a", newline="", encoding="utf-8") as fh:
                    writer = csv.writer(fh)
                    if is_new:
                        writer.writerow(HEADERS)
                    writer.writerow(row)
            except OSError as exc:
                raise StoreError(f"cannot append to {path}: {exc}") from exc

    def _read(self, path: Path) -> List[Record]:
        if not path.exists():
            return []
        records: List[Record] = []
        with self._lock:
            try:
                with path.open("r", newline="", encoding="utf-8") as fh:
                    rows = list(csv.reader(fh))
            except OSError as exc:
                raise StoreError(f"cannot read {path}: {exc}") from exc
        for row in rows:
            if len(row) != 2 or tuple(row) == HEADERS:
                continue
            try:
                records.append(Record(value=float(row[1]), timestamp=datetime.fromisoformat(row[0])))
            except ValueError:
                logger.debug("Skipping malformed CSV row in %s: %r", path, row)
        return records
