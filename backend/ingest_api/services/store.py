"""
Reading Store
=============

Where readings live once they've been normalized.

THE CONTRACT:
------------
The rest of the app only ever needs two things from storage:

    append(reading)                  -> save one reading, stamp it with
                                        server time if it has none
    query_recent(partition, limit)   -> newest readings first

Readings are never updated or deleted here. Two readings with the same
timestamp are fine - the one appended later comes first.

BACKENDS:
--------
- SqliteReadingStore: the real one, one table per partition in a single
  sqlite file (survives restarts)
- MemoryReadingStore: lists in memory, for tests and quick local runs

Pick one with STORE_BACKEND (see config.py).

STARTUP:
-------
connect() is called once when the app starts. If the store can't be
opened it raises StoreUnavailableError and the app refuses to start -
we'd rather crash loudly than accept uploads we can't save.

Author: Sensor Ingest Team
"""

import asyncio
import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ingest_api.exceptions import StoreError, StoreUnavailableError
from ingest_api.models import Partition, SensorReading

logger = logging.getLogger(__name__)


def _stamp(reading: SensorReading) -> SensorReading:
    """Return the reading with a server receipt time, without touching the original."""
    if reading.timestamp is not None:
        return reading
    return reading.model_copy(update={"timestamp": datetime.now(timezone.utc)})


# =============================================================================
# THE INTERFACE
# =============================================================================

class ReadingStore(ABC):
    """Append-only, time-ordered storage with one scope per partition."""

    name = "abstract"

    @abstractmethod
    async def connect(self) -> None:
        """Open the backend. Raises StoreUnavailableError on failure."""

    @abstractmethod
    async def close(self) -> None:
        """Release the backend."""

    @abstractmethod
    async def append(self, reading: SensorReading) -> SensorReading:
        """Save one reading and return the stored copy."""

    @abstractmethod
    async def query_recent(self, partition: Partition, limit: int) -> list[SensorReading]:
        """Up to `limit` readings for a partition, newest first."""


# =============================================================================
# IN-MEMORY BACKEND
# =============================================================================

class MemoryReadingStore(ReadingStore):
    """
    Keeps readings in per-partition lists.

    Everything is gone when the process exits.
    """

    name = "memory"

    def __init__(self):
        self._readings: dict[Partition, list[tuple[int, SensorReading]]] = {
            partition: [] for partition in Partition
        }
        self._sequence = 0
        self._connected = False

    async def connect(self) -> None:
        self._connected = True
        logger.info("[STORE] Using in-memory store (readings are lost on restart)")

    async def close(self) -> None:
        self._connected = False

    def _require_connection(self):
        if not self._connected:
            raise StoreError("Store is not connected")

    async def append(self, reading: SensorReading) -> SensorReading:
        self._require_connection()
        stored = _stamp(reading)
        self._sequence += 1
        self._readings[stored.partition].append((self._sequence, stored))
        return stored

    async def query_recent(self, partition: Partition, limit: int) -> list[SensorReading]:
        self._require_connection()
        if limit <= 0:
            return []
        ordered = sorted(
            self._readings[Partition(partition)],
            key=lambda item: (item[1].timestamp, item[0]),
            reverse=True,
        )
        return [reading for _, reading in ordered[:limit]]


# =============================================================================
# SQLITE BACKEND
# =============================================================================

class SqliteReadingStore(ReadingStore):
    """
    Stores readings in a sqlite file, one table per partition.

    Table layout (same for both partitions):
        id          - insertion order, breaks timestamp ties
        timestamp   - server receipt time, fixed-width ISO 8601 UTC so
                      text ordering == time ordering
        document    - the reading as JSON

    sqlite calls block, so they run in a worker thread via asyncio.to_thread.
    """

    name = "sqlite"

    TABLES = {
        Partition.OUTDOOR: "outdoor_readings",
        Partition.INDOOR: "indoor_readings",
    }

    def __init__(self, db_path):
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        # One connection shared across worker threads
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        for table in self.TABLES.values():
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    document TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{table}_order ON {table}(timestamp, id)"
            )
        conn.commit()
        return conn

    async def connect(self) -> None:
        try:
            self._conn = await asyncio.to_thread(self._open)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Can't open sqlite store at {self.db_path}: {e}") from e
        logger.info(f"[STORE] Connected to sqlite store at {self.db_path}")

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        with self._lock:
            conn.close()
        logger.info("[STORE] sqlite store closed")

    def _require_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Store is not connected")
        return self._conn

    # -------------------------------------------------------------------------
    # Reads and writes
    # -------------------------------------------------------------------------

    @staticmethod
    def _format_timestamp(value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")

    def _insert(self, reading: SensorReading) -> None:
        conn = self._require_connection()
        table = self.TABLES[reading.partition]
        document = json.dumps(reading.model_dump(mode="json"), separators=(",", ":"))
        with self._lock:
            conn.execute(
                f"INSERT INTO {table}(timestamp, document) VALUES (?, ?)",
                (self._format_timestamp(reading.timestamp), document),
            )
            conn.commit()

    def _select(self, partition: Partition, limit: int) -> list[SensorReading]:
        conn = self._require_connection()
        table = self.TABLES[Partition(partition)]
        with self._lock:
            rows = conn.execute(
                f"SELECT document FROM {table} ORDER BY timestamp DESC, id DESC LIMIT ?",
                (int(limit),),
            ).fetchall()
        return [SensorReading.model_validate_json(row[0]) for row in rows]

    async def append(self, reading: SensorReading) -> SensorReading:
        stored = _stamp(reading)
        try:
            await asyncio.to_thread(self._insert, stored)
        except sqlite3.Error as e:
            raise StoreError(f"sqlite write failed: {e}") from e
        return stored

    async def query_recent(self, partition: Partition, limit: int) -> list[SensorReading]:
        if limit <= 0:
            return []
        try:
            return await asyncio.to_thread(self._select, partition, limit)
        except sqlite3.Error as e:
            raise StoreError(f"sqlite read failed: {e}") from e


# =============================================================================
# FACTORY
# =============================================================================

def create_store(config) -> ReadingStore:
    """
    Build the store named by the configuration.

    Args:
        config: A Config (see config.py)

    Returns:
        An unconnected ReadingStore - call connect() before using it
    """
    if config.store_backend == "memory":
        return MemoryReadingStore()
    if config.store_backend == "sqlite":
        return SqliteReadingStore(config.sqlite_path)
    raise StoreUnavailableError(f"Unknown store backend: {config.store_backend}")
