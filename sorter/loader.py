"""Decode and encode the float64 payloads the service accepts and returns."""

from __future__ import annotations

import logging
import math
import re

import numpy as np

from .errors import InvalidInputFileError

logger = logging.getLogger(__name__)

ITEM_SIZE = 8  # bytes per double
DTYPE = "<f8"

# how many non-finite positions are logged individually
NON_FINITE_LOG_LIMIT = 10

_SEPARATORS = re.compile(r"[\s,]+")


def read_binary(data: bytes) -> list[float]:
    """Decode little-endian float64 bytes. NaN/inf are kept but logged."""
    if not data:
        raise InvalidInputFileError("file is empty")
    if len(data) % ITEM_SIZE != 0:
        raise InvalidInputFileError(
            f"invalid file: size {len(data)} is not a multiple of {ITEM_SIZE} bytes"
        )

    arr = np.frombuffer(data, dtype=DTYPE)
    bad = np.flatnonzero(~np.isfinite(arr))
    if bad.size:
        for pos in bad[:NON_FINITE_LOG_LIMIT]:
            logger.warning("value at position %d is not finite (%r)", pos, arr[pos])
        if bad.size > NON_FINITE_LOG_LIMIT:
            logger.warning("%d more non-finite values not shown", bad.size - NON_FINITE_LOG_LIMIT)

    return arr.tolist()


def read_binary_file(path) -> list[float]:
    with open(path, "rb") as f:
        return read_binary(f.read())


def write_binary(values) -> bytes:
    return np.asarray(values, dtype=DTYPE).tobytes()


def write_binary_file(values, path) -> None:
    with open(path, "wb") as out:
        out.write(write_binary(values))


def parse_numbers(text: str) -> list[float]:
    """
    Parse numbers typed by hand, separated by whitespace and/or commas.
    Tokens that are not numbers are skipped; at least two values are required.
    """
    numbers = []
    for token in _SEPARATORS.split(text.strip()):
        if not token:
            continue
        try:
            value = float(token)
        except ValueError:
            continue
        if math.isnan(value):
            continue
        numbers.append(value)

    if len(numbers) < 2:
        raise InvalidInputFileError("at least 2 valid numbers are required")
    return numbers


def format_file_size(n_bytes: int) -> str:
    """1536 -> '1.5 KB'"""
    if n_bytes == 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    k = 1024
    i = 0
    value = float(n_bytes)
    while value >= k and i < len(units) - 1:
        value /= k
        i += 1
    return f"{round(value, 2):g} {units[i]}"
