"""
Strict string to number conversion for configuration values.

The whole string (ignoring surrounding whitespace) must be a number. Trailing
characters, empty strings and Python-only literal forms such as ``1_000`` are
rejected with InvalidNumberError.
"""

import math
import re

from demesh.errors import InvalidNumberError

INT32_MIN = -2**31
INT32_MAX = 2**31 - 1

_INTEGER_RE = re.compile(r"[+-]?\d+")
_REAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def parse_integer(text: str) -> int:
    """
    Parse a 32-bit signed integer.

    Args:
        text: String to convert

    Returns:
        The integer value

    Raises:
        InvalidNumberError: If text is not an integer or is out of range
    """
    stripped = text.strip()
    if not _INTEGER_RE.fullmatch(stripped):
        raise InvalidNumberError(f"Invalid integer value: '{text}'")
    value = int(stripped)
    if not INT32_MIN <= value <= INT32_MAX:
        raise InvalidNumberError(f"Integer value out of range: '{text}'")
    return value


def parse_real(text: str) -> float:
    """
    Parse a finite real number.

    Args:
        text: String to convert

    Returns:
        The float value

    Raises:
        InvalidNumberError: If text is not a finite real number
    """
    stripped = text.strip()
    if not _REAL_RE.fullmatch(stripped):
        raise InvalidNumberError(f"Invalid real value: '{text}'")
    value = float(stripped)
    if not math.isfinite(value):
        raise InvalidNumberError(f"Real value out of range: '{text}'")
    return value


def parse_layer_count(text: str) -> int:
    """Parse a number of extrusion layers (an integer of at least 1)."""
    layers = parse_integer(text)
    if layers < 1:
        raise InvalidNumberError(f"Number of layers must be at least 1 (got {layers})")
    return layers
