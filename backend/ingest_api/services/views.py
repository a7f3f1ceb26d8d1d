"""
Dashboard Views
===============

The two things the dashboard polls for.

LATEST:
    {"outdoor": <newest outdoor reading or null>,
     "indoor":  <newest indoor reading or null>}

HISTORY:
    Up to 20 readings per partition, each tagged with "partition".

    IMPORTANT - the order is NOT one merged timeline:

        [outdoor newest, ..., outdoor oldest, indoor newest, ..., indoor oldest]

    All outdoor readings first, then all indoor readings, each block newest
    first. The dashboard splits the list by partition and relies on this
    order, so don't "fix" it by interleaving on timestamp.

Author: Sensor Ingest Team
"""

import asyncio
from typing import Optional

from ingest_api.models import Partition, SensorReading
from ingest_api.services.store import ReadingStore


DEFAULT_HISTORY_LIMIT = 20

# Block order in the history list
HISTORY_ORDER = (Partition.OUTDOOR, Partition.INDOOR)


class ViewAggregator:
    """Builds the latest and history views from the store."""

    def __init__(self, store: ReadingStore, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.store = store
        self.history_limit = history_limit

    async def _newest(self, partition: Partition) -> Optional[SensorReading]:
        readings = await self.store.query_recent(partition, 1)
        return readings[0] if readings else None

    async def latest(self) -> dict:
        """Newest reading per partition (None where a partition is empty)."""
        outdoor, indoor = await asyncio.gather(
            self._newest(Partition.OUTDOOR),
            self._newest(Partition.INDOOR),
        )
        return {
            "outdoor": outdoor.to_public_dict() if outdoor else None,
            "indoor": indoor.to_public_dict() if indoor else None,
        }

    async def history(self) -> list[dict]:
        """Recent readings, outdoor block then indoor block, each newest first."""
        blocks = await asyncio.gather(
            *(self.store.query_recent(partition, self.history_limit) for partition in HISTORY_ORDER)
        )
        entries = []
        for readings in blocks:
            entries.extend(reading.to_public_dict() for reading in readings)
        return entries
