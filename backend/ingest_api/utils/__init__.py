"""
Utility modules for the sensor ingest backend.
"""

from ingest_api.utils.payload import (
    recover_payload,
    sanitize_body,
    make_visible,
)
from ingest_api.utils.validation import (
    coerce_number,
    validate_history_limit,
)

__all__ = [
    "recover_payload",
    "sanitize_body",
    "make_visible",
    "coerce_number",
    "validate_history_limit",
]
