"""MongoDB-backed sink (one client per request)."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, List, Mapping

from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from ..core.models import Record
from .store import StoreError, utc_now

logger = logging.getLogger(__name__)

RAW_COLLECTION = "raw_readings"
DERIVED_COLLECTION = "derived_results"


class MongoSink:
    """
    Stores readings in two collections of ``{value, timestamp}`` documents.

    A fresh :class:`~pymongo.MongoClient` is opened and closed for every
    call, so each fire-and-forget task owns its connection.
    """

    def __init__(
        self,
        uri: str = "mongodb://localhost:27017",
        database: str = "luxmon",
        *,
        timeout_ms: int = 2000,
        raw_collection: str = RAW_COLLECTION,
        derived_collection: str = DERIVED_COLLECTION,
    ) -> None:
        self.uri = uri
        self.database = database
        self.timeout_ms = int(timeout_ms)
        self.raw_collection = raw_collection
        self.derived_collection = derived_collection

    @contextmanager
    def _connect(self) -> Iterator[Database]:
        try:
            client: MongoClient = MongoClient(
                self.uri, serverSelectionTimeoutMS=self.timeout_ms, tz_aware=True
            )
        except PyMongoError as exc:
            raise StoreError(f"cannot connect to {self.uri}: {exc}") from exc
        try:
            yield client[self.database]
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc
        finally:
            client.close()

    def insert_raw(self, value: float) -> None:
        with self._connect() as db:
            db[self.raw_collection].insert_one({"value": float(value), "timestamp": utc_now()})

    def insert_derived(self, value: float) -> None:
        with self._connect() as db:
            db[self.derived_collection].insert_one(
                {"value": float(value), "iterations": [], "timestamp": utc_now()}
            )

    def query_all_raw(self) -> List[Record]:
        return self._query_all(self.raw_collection)

    def query_all_derived(self) -> List[Record]:
        return self._query_all(self.derived_collection)

    def _query_all(self, collection: str) -> List[Record]:
        with self._connect() as db:
            docs = list(db[collection].find({}).sort("timestamp", 1))
        records: List[Record] = []
        for doc in docs:
            record = _record_from_document(doc)
            if record is None:
                logger.debug("Skipping document without value/timestamp: %r", doc)
                continue
            records.append(record)
        return records


def _record_from_document(doc: Mapping[str, Any]) -> Record | None:
    value = doc.get("value")
    timestamp = doc.get("timestamp")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not isinstance(timestamp, datetime):
        return None
    return Record(value=float(value), timestamp=timestamp)
