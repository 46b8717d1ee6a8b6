"""Exception hierarchy for the Broadside engine."""

from __future__ import annotations


class BroadsideError(Exception):
    """Base class for every error raised by the engine."""


class OutOfRangeError(BroadsideError, ValueError):
    """A coordinate falls outside the grid."""

    def __init__(self, row: int, col: int, rows: int, cols: int) -> None:
        super().__init__(f"Cell ({row}, {col}) is outside the {rows}x{cols} grid.")
        self.row = row
        self.col = col


class AlreadyFiredError(BroadsideError, ValueError):
    """A cell that has already been resolved was targeted again."""

    def __init__(self, row: int, col: int) -> None:
        super().__init__(f"Cell ({row}, {col}) has already been targeted.")
        self.row = row
        self.col = col


class PreconditionError(BroadsideError, RuntimeError):
    """An engine operation was called in a state that its contract forbids."""


class NoSuchSizeError(PreconditionError):
    """The fleet has no ship of the requested size."""

    def __init__(self, size: int) -> None:
        super().__init__(f"Fleet has no ship of size {size}.")
        self.size = size


class AlreadySunkError(PreconditionError):
    """The ship of the requested size is already sunk."""

    def __init__(self, size: int) -> None:
        super().__init__(f"Ship of size {size} is already sunk.")
        self.size = size


class InvalidMatchStateError(BroadsideError, RuntimeError):
    """A fire action was attempted when the match does not accept one."""
