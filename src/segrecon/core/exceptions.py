"""
Exception types raised by the reconstruction core.
"""

from typing import Optional


class SegreconError(Exception):
    """Base class for all errors raised by segrecon."""


class NoSuchSegment(SegreconError, KeyError):
    """Raised when a segment id or variable index is not part of a problem."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class EmptyProblemError(SegreconError, ValueError):
    """Raised when a problem is assembled from an empty set of segments."""


class InfeasibleProblemError(SegreconError, RuntimeError):
    """Raised when the solver could not find a feasible assignment."""


class FileFormatError(SegreconError, ValueError):
    """
    Raised for malformed lines in problem text files.

    Args:
        path: File the line was read from
        line_number: 1-based line number, if known
        message: Description of the problem
    """

    def __init__(self, path: str, line_number: Optional[int], message: str):
        self.path = str(path)
        self.line_number = line_number
        location = f"{self.path}:{line_number}" if line_number is not None else self.path
        super().__init__(f"{location}: {message}")
