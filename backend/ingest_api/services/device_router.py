"""
Device Router
=============

Decides where an upload goes and builds the reading for it.

    POST /upload/outdoor  -> DeviceClass.FULL_SENSOR -> Partition.OUTDOOR
    POST /upload/indoor   -> DeviceClass.CO2_ONLY    -> Partition.INDOOR

The endpoint decides the device class. We never look at the payload to
guess - an ESP32 that only sent co2 is still an outdoor reading, and an
ESP8266 that somehow sent a temperature still only gets its co2 stored.

Author: Sensor Ingest Team
"""

from typing import Optional

from ingest_api.models import DeviceClass, Partition, SensorReading
from ingest_api.services.normalizer import FieldNormalizer


DEVICE_PARTITIONS: dict[DeviceClass, Partition] = {
    DeviceClass.FULL_SENSOR: Partition.OUTDOOR,
    DeviceClass.CO2_ONLY: Partition.INDOOR,
}


def _opaque_string(value) -> Optional[str]:
    """Keep strings and numbers as display text; drop everything else."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text or None
    return None


class DeviceRouter:
    """Maps an upload to its partition and canonical reading."""

    def __init__(self, normalizer: FieldNormalizer):
        self.normalizer = normalizer

    @staticmethod
    def partition_for(device_class: DeviceClass) -> Partition:
        return DEVICE_PARTITIONS[DeviceClass(device_class)]

    def route(self, device_class: DeviceClass, payload: dict) -> SensorReading:
        """
        Build the reading for an upload.

        Args:
            device_class: Which endpoint received the upload
            payload: Parsed JSON object from the device

        Returns:
            A SensorReading with only the partition's fields (no timestamp yet)

        Raises:
            FieldValidationError: If co2 is unusable
        """
        partition = self.partition_for(device_class)
        fields = self.normalizer.normalize(payload, partition)

        # ESP firmware sends "deviceId"
        device_id = payload.get("deviceId", payload.get("device_id"))

        return SensorReading(
            partition=partition,
            device_id=_opaque_string(device_id),
            device_timestamp=_opaque_string(payload.get("timestamp")),
            **fields,
        )
