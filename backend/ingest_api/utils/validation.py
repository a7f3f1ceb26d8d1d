"""
Input Validation Utilities
===========================

Number coercion for values coming off the devices.

Firmware sends numbers in all sorts of shapes: 412, 412.0, "412", " 412 ",
null, "", sometimes "nan" when a sensor is warming up. This module decides,
for any single value, whether it is:

- a usable number  -> float
- "no value"       -> None   (absent, null, blank string)
- garbage          -> ValueError

What to DO with None or garbage is up to the normalizer.

Author: Sensor Ingest Team
"""

import math
import re
from typing import Any, Optional


# Plain decimal with optional exponent: "412", "-3.5", ".5", "4e2".
# No underscores, no non-ASCII digits, no "nan"/"inf" words.
NUMBER_PATTERN = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def coerce_number(value: Any) -> Optional[float]:
    """
    Coerce one payload value to a finite float.

    Args:
        value: Raw value from the parsed JSON

    Returns:
        The number as a float, or None if the device reported no value

    Raises:
        ValueError: If a value was reported but it isn't a finite number
    """
    if value is None:
        return None

    # bool is a subclass of int, but true/false is never a sensor reading
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            raise ValueError("number is out of range")
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if not NUMBER_PATTERN.fullmatch(text):
            raise ValueError(f"'{value}' is not a number")
        number = float(text)
    else:
        raise ValueError(f"{type(value).__name__} is not a number")

    if not math.isfinite(number):
        raise ValueError("not a finite number")

    return number


def validate_history_limit(limit: int) -> bool:
    """
    Validate the per-partition history cap.

    Args:
        limit: How many readings per partition the history view returns

    Returns:
        True if valid, False otherwise
    """
    return 1 <= limit <= 1000
