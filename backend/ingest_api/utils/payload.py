"""
Payload Recovery
================

ESP firmware doesn't always send clean JSON. We've seen:
- Null bytes stuck in the middle of the body (leftover buffer bytes)
- Trailing junk after the closing brace
- Stray whitespace and newlines around everything

So instead of letting FastAPI's strict JSON parser reject the request, the
upload endpoints hand us the raw bytes and we try to recover a usable
JSON object here.

If we still can't parse it, we raise PayloadParseError with a diagnostic
text. With echo turned on, that text includes the body as received, with
invisible characters replaced by markers, so you can see exactly what the
device sent:

    Invalid JSON: Expecting property name enclosed in double quotes ...
    Received: {co2: 5[NULL][NEWLINE]

WARNING: the echo is a debugging aid. Don't turn it on if devices might
send secrets in their bodies (see DEBUG_ECHO_PAYLOADS in config.py).

Author: Sensor Ingest Team
"""

import json
import logging

from ingest_api.exceptions import PayloadParseError

logger = logging.getLogger(__name__)


NULL_MARKER = "[NULL]"
NEWLINE_MARKER = "[NEWLINE]"

# Longest echo we'll ever send back
MAX_ECHO_LENGTH = 1000


def sanitize_body(raw: bytes) -> str:
    """
    Decode the raw body and strip the stuff that breaks parsing.

    Args:
        raw: Request body exactly as received

    Returns:
        Text with null bytes removed and outer whitespace trimmed
    """
    text = raw.decode("utf-8", errors="replace")
    return text.replace("\x00", "").strip()


def make_visible(text: str) -> str:
    """Replace null bytes and newlines with visible markers."""
    return (
        text.replace("\x00", NULL_MARKER)
        .replace("\r\n", NEWLINE_MARKER)
        .replace("\n", NEWLINE_MARKER)
    )


def _diagnostic(message: str, received: str, echo_input: bool) -> str:
    if not echo_input:
        return f"Invalid JSON: {message}"

    echoed = make_visible(received)
    if len(echoed) > MAX_ECHO_LENGTH:
        echoed = echoed[:MAX_ECHO_LENGTH] + "..."
    return f"Invalid JSON: {message}\nReceived: {echoed}"


def recover_payload(raw: bytes, echo_input: bool = True) -> dict:
    """
    Turn a raw request body into a JSON object.

    Steps:
    1. Decode, drop null bytes, trim whitespace
    2. Parse with json.loads
    3. If the only problem is junk AFTER a complete value, keep the value
    4. Make sure we ended up with an object ({...}), not a list or number

    The echo in error texts is built from the body BEFORE cleanup, so null
    bytes and newlines show up as markers where the device put them.

    Args:
        raw: Request body bytes
        echo_input: Put the received body in the error text?

    Returns:
        The parsed JSON object

    Raises:
        PayloadParseError: If no JSON object can be recovered
    """
    received = raw.decode("utf-8", errors="replace")
    text = sanitize_body(raw)

    def fail(message: str) -> PayloadParseError:
        return PayloadParseError(message, _diagnostic(message, received, echo_input))

    if not text:
        raise fail("empty body")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        if not e.msg.startswith("Extra data"):
            raise fail(str(e)) from e

        # Valid JSON followed by garbage - keep the valid part
        data, end = json.JSONDecoder().raw_decode(text)
        logger.warning(f"[PAYLOAD] Ignored {len(text) - end} trailing characters after JSON body")
    except RecursionError as e:
        raise fail("JSON nested too deeply") from e

    if not isinstance(data, dict):
        raise fail(f"expected a JSON object, got {type(data).__name__}")

    return data
