"""Tests for splitting the input into runs and sorting each run."""

import math

import pytest

from sorter.errors import InvalidConfigError
from sorter.runs import sort_run, split_into_runs


class TestSplitIntoRuns:
    def test_even_split(self):
        assert split_into_runs([5, 3, 8, 1, 9, 2], 3) == [[5, 3, 8], [1, 9, 2]]

    def test_last_run_shorter(self):
        runs = split_into_runs(list(range(7)), 3)
        assert [len(r) for r in runs] == [3, 3, 1]

    def test_keeps_every_value_in_order(self):
        data = [4.5, -1.0, 3.25, 3.25, 0.0, 10.0, -7.5, 2.0]
        for size in range(1, 10):
            runs = split_into_runs(data, size)
            assert len(runs) == math.ceil(len(data) / size)
            assert [v for run in runs for v in run] == data

    def test_empty_input_has_no_runs(self):
        assert split_into_runs([], 4) == []

    @pytest.mark.parametrize("size", [0, -3, 2.5, 3.0, True, float("nan"), float("inf"), "3", None])
    def test_rejects_bad_run_size(self, size):
        with pytest.raises(InvalidConfigError):
            split_into_runs([1, 2, 3], size)


class TestSortRun:
    def test_sorts_non_decreasing(self):
        assert sort_run([5, 3, 8]) == [3, 5, 8]
        assert sort_run([2.5, -1.0, 2.5, 0.0]) == [-1.0, 0.0, 2.5, 2.5]

    def test_returns_new_list(self):
        run = [3, 1, 2]
        out = sort_run(run)
        assert out is not run
        assert run == [3, 1, 2]

    def test_empty_and_singleton(self):
        assert sort_run([]) == []
        assert sort_run([42.0]) == [42.0]
