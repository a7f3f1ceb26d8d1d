"""
Models Package
==============

This is where all our data models live.
Import from here instead of the individual files.

Example:
    from ingest_api.models import Partition, SensorReading
"""

from .reading import (
    # Which device, which partition
    Partition,
    DeviceClass,

    # Field tables
    SENTINEL_VALUE,
    OUTDOOR_ONLY_FIELDS,
    PARTITION_FIELDS,
    MANDATORY_FIELDS,

    # The canonical record
    SensorReading,

    # What we send back
    UploadResponse,
    LatestResponse,
)

__all__ = [
    "Partition",
    "DeviceClass",
    "SENTINEL_VALUE",
    "OUTDOOR_ONLY_FIELDS",
    "PARTITION_FIELDS",
    "MANDATORY_FIELDS",
    "SensorReading",
    "UploadResponse",
    "LatestResponse",
]
