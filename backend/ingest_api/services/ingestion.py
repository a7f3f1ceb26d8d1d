"""
Ingestion Service
=================

The upload path, start to finish:

    raw bytes
        |
        | recover_payload()       - fix up / parse the JSON
        v
    dict
        |
        | DeviceRouter.route()    - pick partition, normalize fields
        v
    SensorReading
        |
        | ReadingStore.append()   - save it (server timestamp added)
        v
    stored SensorReading

Either the whole thing works and exactly one reading is saved, or
something raises and nothing is saved. We don't retry store failures -
the device will send again on its next cycle.

Author: Sensor Ingest Team
"""

import logging

from ingest_api.models import DeviceClass, SensorReading
from ingest_api.services.device_router import DeviceRouter
from ingest_api.services.store import ReadingStore
from ingest_api.utils.payload import recover_payload

logger = logging.getLogger(__name__)


class IngestionService:
    """Runs one upload through recovery, routing and storage."""

    def __init__(self, store: ReadingStore, router: DeviceRouter, echo_payloads: bool = True):
        """
        Args:
            store: Where readings get saved
            router: Builds readings from parsed payloads
            echo_payloads: Include the sanitized body in parse errors?
        """
        self.store = store
        self.router = router
        self.echo_payloads = echo_payloads

    async def ingest(self, device_class: DeviceClass, raw: bytes) -> SensorReading:
        """
        Save one upload.

        Args:
            device_class: Which endpoint received it
            raw: Request body bytes

        Returns:
            The reading as stored

        Raises:
            PayloadParseError: Body isn't a JSON object
            FieldValidationError: co2 is unusable
            StoreError: The store failed the write
        """
        payload = recover_payload(raw, echo_input=self.echo_payloads)
        reading = self.router.route(device_class, payload)
        stored = await self.store.append(reading)

        tag = stored.partition.value.upper()
        logger.info(f"[{tag}] Reading saved: co2={stored.co2}")
        return stored
