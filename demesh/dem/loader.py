"""
Sample loading from whitespace-separated text files.

Each DEM input (elevation, latitude, longitude, mask) is stored as one file
of real numbers separated by arbitrary whitespace. The whole file is read at
once and converted to a float64 array.
"""

from pathlib import Path
from typing import Union
import logging
import re

import numpy as np

from demesh.config.coercion import parse_real
from demesh.errors import FileOpenError, InvalidNumberError

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(rb"\S+")


def read_point_data(source: Union[str, Path]) -> np.ndarray:
    """
    Load real-valued samples from a text file.

    Args:
        source: Path to a file of whitespace-separated numbers

    Returns:
        float64 array of the values, in file order

    Raises:
        FileOpenError: If the file cannot be read
        InvalidNumberError: If the file holds no numbers or a token is not a
            number (the message gives its byte offset)

    Example:
        >>> elevation = read_point_data("elev.txt")
        >>> print(f"{elevation.size} samples")
    """
    source = Path(source)
    try:
        with open(source, 'rb') as f:
            buffer = f.read()
    except OSError as e:
        raise FileOpenError(source, e.strerror) from e

    values = []
    for match in _TOKEN_RE.finditer(buffer):
        token = match.group().decode('ascii', errors='replace')
        try:
            values.append(parse_real(token))
        except InvalidNumberError:
            raise InvalidNumberError(
                f"Invalid numeric data found at byte {match.start()} of '{source}'!"
            ) from None

    if not values:
        raise InvalidNumberError(f"No numeric data found in '{source}'!")

    logger.debug("Read %d values from %s", len(values), source)
    return np.asarray(values, dtype=np.float64)


def read_mask_data(source: Union[str, Path]) -> np.ndarray:
    """
    Load 0/1 validity flags from a text file.

    Args:
        source: Path to a file of whitespace-separated 0/1 values

    Returns:
        int32 array of flags

    Raises:
        FileOpenError: If the file cannot be read
        InvalidNumberError: If any value is not 0 or 1
    """
    values = read_point_data(source)
    bad = np.flatnonzero((values != 0.0) & (values != 1.0))
    if bad.size:
        raise InvalidNumberError(
            f"Mask value {values[bad[0]]:g} at index {bad[0]} of '{source}' is not 0 or 1!"
        )
    return values.astype(np.int32)
