# create_real_number.py
import math
import os

import numpy as np

MAX_RANDOM_COUNT = 100


def generate_test_data(count, min_value=0.0, max_value=100.0, integer=False, seed=None):
    """
    Random input for the visualizer.
    Real values are uniform in [min, max); integers are uniform in [min, max].
    """
    if not 2 <= count <= MAX_RANDOM_COUNT:
        raise ValueError(f"count must be between 2 and {MAX_RANDOM_COUNT}")
    if min_value >= max_value:
        raise ValueError("min must be smaller than max")

    rng = np.random.default_rng(seed)
    if integer:
        low, high = math.ceil(min_value), math.floor(max_value)
        if low > high:
            raise ValueError(f"no integer between {min_value} and {max_value}")
        data = rng.integers(low, high, size=count, endpoint=True)
    else:
        data = rng.uniform(min_value, max_value, count)
    return data.astype(np.float64).tolist()


def write_test_files(sizes, directory=".", low=-1000.0, high=1000.0, seed=None):
    """Write bin0, bin1, ... files of random doubles, one per entry of *sizes*."""
    rng = np.random.default_rng(seed)
    paths = []
    for i, size in enumerate(sizes):
        data = rng.uniform(low, high, size).astype("<f8")
        path = os.path.join(directory, f"bin{i}")
        data.tofile(path)
        paths.append(path)
    return paths
