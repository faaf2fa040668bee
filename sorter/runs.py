# sorter/runs.py
"""Run generation: split the input into fixed-size chunks and sort each one."""

from .auto_config import validate_run_size


def split_into_runs(sequence, run_size):
    """
    Cut *sequence* into contiguous runs of at most run_size values.
    Order inside each run is the input order; only the last run may be shorter.
    """
    run_size = validate_run_size(run_size)
    values = list(sequence)
    return [values[i:i + run_size] for i in range(0, len(values), run_size)]


def sort_run(run):
    """Return a new list with the values of *run* in non-decreasing order."""
    if len(run) <= 1:
        return list(run)
    return sorted(run)
