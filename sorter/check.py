# check.py
from collections import Counter

import numpy as np

from .loader import DTYPE, ITEM_SIZE

CHECK_CHUNK_ITEMS = 1 << 16  # doubles read per chunk by check_sorted_file


def is_sorted(values):
    return all(a <= b for a, b in zip(values, values[1:]))


def same_multiset(a, b):
    return Counter(a) == Counter(b)


def check_sorted_file(path):
    """
    True if the float64 file at *path* is in non-decreasing order.
    Reads fixed-size chunks so the whole output never has to fit in memory;
    the last value of each chunk is carried over to check the boundary.
    """
    last = None
    with open(path, "rb") as f:
        while True:
            data = f.read(ITEM_SIZE * CHECK_CHUNK_ITEMS)
            usable = len(data) - len(data) % ITEM_SIZE
            if not usable:
                return True
            chunk = np.frombuffer(data[:usable], dtype=DTYPE)
            if last is not None and chunk[0] < last:
                return False
            if np.any(chunk[1:] < chunk[:-1]):
                return False
            last = chunk[-1]
