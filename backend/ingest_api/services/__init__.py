"""
Services Package
================

These are the "workers" that do the actual work.

- FieldNormalizer: Turns payload values into numbers (or the sentinel)
- DeviceRouter: Picks the partition and builds the reading
- IngestionService: Runs an upload from raw bytes to the store
- ViewAggregator: Builds the latest/history views for the dashboard
- ReadingStore: Where readings are kept (sqlite or memory)
"""

from .normalizer import FieldNormalizer, MandatoryFieldPolicy
from .device_router import DeviceRouter, DEVICE_PARTITIONS
from .store import ReadingStore, MemoryReadingStore, SqliteReadingStore, create_store
from .ingestion import IngestionService
from .views import ViewAggregator, DEFAULT_HISTORY_LIMIT

__all__ = [
    "FieldNormalizer",
    "MandatoryFieldPolicy",
    "DeviceRouter",
    "DEVICE_PARTITIONS",
    "ReadingStore",
    "MemoryReadingStore",
    "SqliteReadingStore",
    "create_store",
    "IngestionService",
    "ViewAggregator",
    "DEFAULT_HISTORY_LIMIT",
]
