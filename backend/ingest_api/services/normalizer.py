"""
Field Normalizer
================

Takes a parsed payload and pulls out the numbers a partition needs.

THE RULES:
---------
For every field in PARTITION_FIELDS[partition]:

    value is missing / null / ""   -> sentinel (-99999)
    value is garbage ("abc", [])   -> sentinel, EXCEPT for co2 -> rejected
    value is a number              -> kept

co2 is mandatory, and what "missing co2" means has flip-flopped over time:

    MandatoryFieldPolicy.FALLBACK (default)
        Missing co2 becomes the sentinel and the upload is accepted.
    MandatoryFieldPolicy.STRICT
        Missing co2 rejects the upload.

Garbage co2 (a value that IS there but isn't a number) is rejected under
both policies.

Author: Sensor Ingest Team
"""

import logging
from enum import Enum

from ingest_api.exceptions import FieldValidationError
from ingest_api.models import MANDATORY_FIELDS, PARTITION_FIELDS, SENTINEL_VALUE, Partition
from ingest_api.utils.validation import coerce_number

logger = logging.getLogger(__name__)


class MandatoryFieldPolicy(str, Enum):
    """What to do when a mandatory field wasn't reported at all."""
    FALLBACK = "fallback"
    STRICT = "strict"


class FieldNormalizer:
    """
    Coerces payload values into the numeric field set of a partition.

    HOW TO USE:
    ----------
    normalizer = FieldNormalizer()
    fields = normalizer.normalize({"co2": "412"}, Partition.INDOOR)
    # {"co2": 412.0}
    """

    def __init__(
        self,
        policy: MandatoryFieldPolicy = MandatoryFieldPolicy.FALLBACK,
        sentinel: float = SENTINEL_VALUE,
    ):
        """
        Args:
            policy: How to treat a mandatory field that wasn't reported
            sentinel: Stand-in for "no value"
        """
        self.policy = MandatoryFieldPolicy(policy)
        self.sentinel = float(sentinel)

    def normalize(self, payload: dict, partition: Partition) -> dict[str, float]:
        """
        Build the numeric fields for one reading.

        Args:
            payload: Parsed JSON object from the device
            partition: Which field set to use

        Returns:
            {field_name: number} for every field of the partition

        Raises:
            FieldValidationError: If a mandatory field is unusable
        """
        values: dict[str, float] = {}

        for name in PARTITION_FIELDS[partition]:
            mandatory = name in MANDATORY_FIELDS

            try:
                number = coerce_number(payload.get(name))
            except ValueError as e:
                if mandatory:
                    raise FieldValidationError(name, str(e))
                logger.debug(f"[{partition.value.upper()}] '{name}' unusable ({e}), using sentinel")
                number = None

            if number is None:
                if mandatory and self.policy == MandatoryFieldPolicy.STRICT:
                    raise FieldValidationError(name, "field is required")
                number = self.sentinel

            values[name] = number

        return values
