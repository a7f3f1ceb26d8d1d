"""
Reading Models
==============
Pydantic models for the readings our ESP nodes send us.

We have TWO kinds of devices out there:
- The full-sensor node (ESP32): temperature, humidity, pressure, light AND CO2
- The CO2-only node (ESP8266): just CO2

Instead of two separate record types, there is ONE SensorReading with a
`partition` field that says which kind it is. The fields each partition
cares about live in the PARTITION_FIELDS table below - normalization and
the dashboard views both read from it.

Author: Sensor Ingest Team
"""

import math
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================

class Partition(str, Enum):
    """
    Logical storage partition for readings.

    - OUTDOOR: readings from the full-sensor node
    - INDOOR: readings from the CO2-only node
    """
    OUTDOOR = "outdoor"
    INDOOR = "indoor"


class DeviceClass(str, Enum):
    """
    Which kind of device sent the upload.

    This is decided by the endpoint that received the upload, never by
    what happens to be inside the payload.
    """
    FULL_SENSOR = "full_sensor"
    CO2_ONLY = "co2_only"


# =============================================================================
# FIELD TABLES
# =============================================================================

# "The device didn't report this value" - chosen so it can't be confused
# with a real zero reading.
SENTINEL_VALUE = -99999

OUTDOOR_ONLY_FIELDS = ("temperature", "humidity", "pressure", "light")

PARTITION_FIELDS: dict[Partition, tuple[str, ...]] = {
    Partition.OUTDOOR: OUTDOOR_ONLY_FIELDS + ("co2",),
    Partition.INDOOR: ("co2",),
}

MANDATORY_FIELDS = ("co2",)


# =============================================================================
# THE CANONICAL READING
# =============================================================================

class SensorReading(BaseModel):
    """
    One normalized reading, from either kind of device.

    Fields:
        partition: outdoor or indoor (decides which numbers are meaningful)
        co2: CO2 in ppm, always a finite number (may be the sentinel)
        temperature/humidity/pressure/light: outdoor only, None for indoor
        device_id: Whatever the device calls itself (optional, not checked)
        device_timestamp: Time the device claims, kept for display only
        timestamp: When WE received it - set by the store on append

    Ordering always uses `timestamp`, never `device_timestamp`.
    """
    partition: Partition = Field(..., description="Storage partition")
    co2: float = Field(..., description="CO2 concentration (ppm)")
    temperature: Optional[float] = Field(None, description="Temperature")
    humidity: Optional[float] = Field(None, description="Relative humidity %")
    pressure: Optional[float] = Field(None, description="Pressure")
    light: Optional[float] = Field(None, description="Light level")
    device_id: Optional[str] = Field(None, description="Device identifier")
    device_timestamp: Optional[str] = Field(
        None, description="Device-reported time (display only)"
    )
    timestamp: Optional[datetime] = Field(None, description="Server receipt time")

    @model_validator(mode="after")
    def check_partition_fields(self) -> "SensorReading":
        if not math.isfinite(self.co2):
            raise ValueError("co2 must be a finite number")

        for name in OUTDOOR_ONLY_FIELDS:
            value = getattr(self, name)
            if self.partition == Partition.OUTDOOR:
                if value is None or not math.isfinite(value):
                    raise ValueError(f"outdoor readings need a finite '{name}'")
            elif value is not None:
                raise ValueError(f"indoor readings can't carry '{name}'")
        return self

    def to_public_dict(self) -> dict:
        """
        Shape sent to the dashboard.

        Only the numbers that mean something for this partition are included,
        so indoor readings don't show up with four empty columns.
        """
        data = {"partition": self.partition.value}
        for name in PARTITION_FIELDS[self.partition]:
            data[name] = getattr(self, name)
        if self.device_id is not None:
            data["device_id"] = self.device_id
        if self.device_timestamp is not None:
            data["device_timestamp"] = self.device_timestamp
        data["timestamp"] = self.timestamp.isoformat() if self.timestamp else None
        return data


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class UploadResponse(BaseModel):
    """Returned after a successful upload."""
    message: str = Field(..., description="Human-readable result")
    partition: Partition = Field(..., description="Where the reading was stored")


class LatestResponse(BaseModel):
    """
    The newest reading from each partition.

    A partition with no data yet is null, not an error.
    """
    outdoor: Optional[dict] = Field(None, description="Newest outdoor reading")
    indoor: Optional[dict] = Field(None, description="Newest indoor reading")
