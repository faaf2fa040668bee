# auto_config.py
import logging
import math
import numbers
import os

import psutil

from .errors import InputTooLargeError, InvalidConfigError

logger = logging.getLogger(__name__)

# run size used by the visualizer when nothing else is configured
DEFAULT_RUN_SIZE = 5

RUN_SIZE_ENV = "EXTSORT_RUN_SIZE"

# bytes per element (float64)
ITEM_SIZE = 8

# the engine holds the input copy, the current generation and the next one
WORKING_COPIES = 3


def validate_run_size(value):
    """
    run_size must be a real integer >= 1.
    bool, float (even 3.0), NaN and inf are all rejected.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidConfigError(
            f"run_size must be a positive integer, got {value!r}",
            option="run_size", value=value,
        )
    if value < 1:
        raise InvalidConfigError(
            f"run_size must be >= 1, got {value}",
            option="run_size", value=value,
        )
    return int(value)


def resolve_run_size(explicit=None):
    """
    Priority:
    1) explicit argument (validated, errors propagate)
    2) env EXTSORT_RUN_SIZE
    3) DEFAULT_RUN_SIZE
    """
    if explicit is not None:
        return validate_run_size(explicit)

    raw = os.getenv(RUN_SIZE_ENV)
    if raw is None:
        return DEFAULT_RUN_SIZE

    try:
        size = int(raw)
        if size > 0:
            return size
    except (TypeError, ValueError):
        pass
    logger.warning("ignoring %s=%r, using run size %d", RUN_SIZE_ENV, raw, DEFAULT_RUN_SIZE)
    return DEFAULT_RUN_SIZE


def choose_run_size(n):
    """
    chọn run_size dựa trên số phần tử
    """
    if n <= 100:
        return DEFAULT_RUN_SIZE
    elif n <= 10_000:
        return 64
    elif n <= 1_000_000:
        return 1024
    elif n <= 50_000_000:
        return 16384
    else:
        return 65536


def max_input_elements(ram_ratio=0.5):
    """
    How many float64 values the service may keep in memory at once,
    given the RAM currently available.
    """
    mem = psutil.virtual_memory()
    available_mem = int(mem.available * ram_ratio)
    return max(1, available_mem // (ITEM_SIZE * WORKING_COPIES))


def estimate_passes(n, run_size):
    runs = math.ceil(n / run_size) if n else 0
    return math.ceil(math.log2(runs)) if runs > 1 else 0


def auto_tune_params(n, ram_ratio=0.5):
    """
    Chọn run_size cho n phần tử và ước lượng số pass.
    Raises InputTooLargeError if n values cannot be held in RAM.
    """
    limit = max_input_elements(ram_ratio)
    if n > limit:
        raise InputTooLargeError(
            f"{n} values exceed the in-memory limit of {limit}",
            limit=limit, observed=n,
        )

    run_size = choose_run_size(n)
    return run_size, estimate_passes(n, run_size)
