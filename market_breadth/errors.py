from __future__ import annotations


class BreadthError(Exception):
    """Base class for errors raised by the breadth service."""


class SourceUnavailable(BreadthError):
    """
    The record source could not be reached or the query failed.

    Not retried here; retry policy belongs to the driver configuration.
    """


class EmptyResult(BreadthError):
    """The fetch succeeded but the window holds no snapshots."""

    def __init__(self, message: str = "No data available") -> None:
        super().__init__(message)
