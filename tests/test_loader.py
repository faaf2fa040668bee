"""Tests for binary decoding, hand-typed input, test data and verification helpers."""

import logging
import math
import struct

import pytest

from sorter import check
from sorter.check import check_sorted_file, is_sorted, same_multiset
from sorter.create_real_number import MAX_RANDOM_COUNT, generate_test_data, write_test_files
from sorter.errors import InvalidInputFileError
from sorter.loader import (
    format_file_size,
    parse_numbers,
    read_binary,
    read_binary_file,
    write_binary,
    write_binary_file,
)


class TestBinary:
    def test_read(self):
        data = struct.pack("<3d", 1.5, -2.0, 3.25)
        assert read_binary(data) == [1.5, -2.0, 3.25]

    def test_write_matches_struct(self):
        assert write_binary([1.5, -2.0]) == struct.pack("<2d", 1.5, -2.0)

    def test_empty(self):
        with pytest.raises(InvalidInputFileError, match="empty"):
            read_binary(b"")

    def test_not_multiple_of_eight(self):
        with pytest.raises(InvalidInputFileError, match="multiple of 8"):
            read_binary(b"\x00" * 12)

    def test_non_finite_is_kept_and_logged(self, caplog):
        data = struct.pack("<3d", 1.0, float("inf"), float("nan"))
        with caplog.at_level(logging.WARNING, logger="sorter.loader"):
            values = read_binary(data)
        assert values[0] == 1.0
        assert math.isinf(values[1])
        assert math.isnan(values[2])
        assert "position 1" in caplog.text
        assert "position 2" in caplog.text

    def test_files(self, tmp_path):
        path = tmp_path / "data.bin"
        write_binary_file([3.0, 1.0, 2.0], path)
        assert path.stat().st_size == 24
        assert read_binary_file(path) == [3.0, 1.0, 2.0]


class TestParseNumbers:
    def test_mixed_separators(self):
        assert parse_numbers("3, 1.5\n-2  7,,8") == [3.0, 1.5, -2.0, 7.0, 8.0]

    def test_skips_garbage(self):
        assert parse_numbers("1 abc 2 nan") == [1.0, 2.0]

    @pytest.mark.parametrize("text", ["", "   ", "5", "x y z"])
    def test_needs_two_numbers(self, text):
        with pytest.raises(InvalidInputFileError):
            parse_numbers(text)


class TestFormatFileSize:
    @pytest.mark.parametrize("n,expected", [
        (0, "0 Bytes"),
        (500, "500 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5 MB"),
        (3 * 1024 ** 3, "3 GB"),
        (2048 * 1024 ** 3, "2048 GB"),
    ])
    def test_format(self, n, expected):
        assert format_file_size(n) == expected


class TestGenerateTestData:
    def test_real_range(self):
        values = generate_test_data(50, -5.0, 5.0, seed=1)
        assert len(values) == 50
        assert all(-5.0 <= v < 5.0 for v in values)

    def test_integer_range_inclusive(self):
        values = generate_test_data(MAX_RANDOM_COUNT, 1, 3, integer=True, seed=7)
        assert set(values) <= {1.0, 2.0, 3.0}
        assert all(float(v).is_integer() for v in values)

    def test_seed_is_deterministic(self):
        assert generate_test_data(10, seed=3) == generate_test_data(10, seed=3)

    @pytest.mark.parametrize("count", [0, 1, MAX_RANDOM_COUNT + 1])
    def test_count_bounds(self, count):
        with pytest.raises(ValueError):
            generate_test_data(count)

    def test_min_must_be_below_max(self):
        with pytest.raises(ValueError):
            generate_test_data(5, 10, 10)

    def test_no_integer_in_range(self):
        with pytest.raises(ValueError):
            generate_test_data(5, 0.2, 0.8, integer=True)

    def test_write_files(self, tmp_path):
        paths = write_test_files([4, 10], tmp_path, seed=0)
        assert [p.rsplit("bin", 1)[-1] for p in paths] == ["0", "1"]
        assert len(read_binary_file(paths[1])) == 10


class TestCheck:
    def test_is_sorted(self):
        assert is_sorted([])
        assert is_sorted([1, 1, 2])
        assert not is_sorted([2, 1])

    def test_same_multiset(self):
        assert same_multiset([1, 2, 2], [2, 1, 2])
        assert not same_multiset([1, 2], [1, 2, 2])

    def test_check_sorted_file(self, tmp_path):
        good = tmp_path / "good.bin"
        bad = tmp_path / "bad.bin"
        write_binary_file([1.0, 2.0, 2.0, 9.0], good)
        write_binary_file([1.0, 3.0, 2.0], bad)
        assert check_sorted_file(good)
        assert not check_sorted_file(bad)

    def test_check_sorted_file_across_chunks(self, tmp_path, monkeypatch):
        monkeypatch.setattr(check, "CHECK_CHUNK_ITEMS", 3)
        good = tmp_path / "good.bin"
        bad = tmp_path / "bad.bin"
        empty = tmp_path / "empty.bin"
        write_binary_file([float(v) for v in range(10)], good)
        # the drop sits exactly on a chunk boundary
        write_binary_file([0.0, 1.0, 5.0, 4.0, 6.0, 7.0], bad)
        empty.write_bytes(b"")
        assert check_sorted_file(good)
        assert not check_sorted_file(bad)
        assert check_sorted_file(empty)
