"""
Ingestion Errors
================

Everything that can go wrong between "device sends bytes" and "reading is
saved" ends up as one of these.

    IngestError
    ├── PayloadParseError      -> 400, plain text diagnostic
    ├── FieldValidationError   -> 400, JSON {"error", "field", "reason"}
    └── StoreError             -> 500, JSON {"error"}
        └── StoreUnavailableError  (raised at startup, process should not start)

The HTTP mapping lives in main.py - the core never imports FastAPI.
"""


class IngestError(Exception):
    """Base class for every error raised by the ingestion core."""


class PayloadParseError(IngestError):
    """
    The request body could not be turned into a JSON object.

    Attributes:
        message: What the JSON parser complained about
        diagnostic: Text sent back to the device (may echo the sanitized body)
    """

    def __init__(self, message: str, diagnostic: str):
        super().__init__(message)
        self.message = message
        self.diagnostic = diagnostic


class FieldValidationError(IngestError):
    """A mandatory field has a value that is not a number."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid '{field}': {reason}")
        self.field = field
        self.reason = reason


class StoreError(IngestError):
    """The storage backend failed a read or a write."""


class StoreUnavailableError(StoreError):
    """The storage backend could not be opened at startup."""
