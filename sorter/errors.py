"""
Errors raised by the sorter package.
"""

from __future__ import annotations


class SortError(Exception):
    """Base class for everything the sorter raises on purpose."""


class InvalidConfigError(SortError, ValueError):
    """
    Raised before any phase starts when the sort configuration is unusable
    (e.g. a run size that is not a positive integer).
    """

    def __init__(self, message: str, *, option: str | None = None, value=None) -> None:
        super().__init__(message)
        self.option = option
        self.value = value


class InvalidInputFileError(SortError, ValueError):
    """Raised when uploaded bytes or typed input cannot be decoded into numbers."""


class InputTooLargeError(SortError):
    """
    Raised when an input would not fit in the memory budget of the service.
    """

    def __init__(self, message: str, *, limit: int | None = None, observed: int | None = None) -> None:
        super().__init__(message)
        self.limit = limit
        self.observed = observed
