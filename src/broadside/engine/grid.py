"""Cell-level state for one side's board."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, NamedTuple, Sequence

from broadside.telemetry import get_meter, get_tracer

from .errors import AlreadyFiredError, OutOfRangeError, PreconditionError

logger = logging.getLogger(__name__)
tracer = get_tracer("broadside.engine.grid")
meter = get_meter("broadside.engine.grid")

SHOT_COUNTER = meter.create_counter(
    "broadside_engine_cells_fired",
    unit="1",
    description="Cells marked as fired on a grid",
)

AXIS_DELTAS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
RING_DELTAS: tuple[tuple[int, int], ...] = tuple(
    (delta_row, delta_col)
    for delta_row in (-1, 0, 1)
    for delta_col in (-1, 0, 1)
    if (delta_row, delta_col) != (0, 0)
)


class Coordinate(NamedTuple):
    """A grid position; compares equal to a plain ``(row, col)`` tuple."""

    row: int
    col: int


class CellState(Enum):
    """What is known about a cell from shots taken at it."""

    UNFIRED = "unfired"
    MISS = "fired-miss"
    HIT = "fired-hit"


@dataclass
class Cell:
    """One grid position."""

    row: int
    col: int
    has_ship_truth: bool = False
    state: CellState = CellState.UNFIRED
    excluded: bool = False
    sunk: bool = False

    @property
    def fired(self) -> bool:
        return self.state is not CellState.UNFIRED

    @property
    def confirmed_ship(self) -> bool:
        return self.state is CellState.HIT


@dataclass
class Grid:
    """Rectangular board of cells with fired/hit tracking.

    The opponent-facing grid never carries ship truth: everything the
    locator reads from it was revealed through play.
    """

    rows: int
    cols: int
    owner: str = "unknown"
    cells: list[list[Cell]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.rows < 1 or self.cols < 1:
            raise ValueError("Grid dimensions must be positive.")
        self.cells = [[Cell(row, col) for col in range(self.cols)] for row in range(self.rows)]

    @classmethod
    def from_layout(cls, layout: Sequence[Sequence[bool]], owner: str = "player") -> Grid:
        """Build a grid whose cells carry the ship truth of ``layout``."""
        rows = len(layout)
        cols = len(layout[0]) if rows else 0
        if any(len(line) != cols for line in layout):
            raise ValueError("Ship layout rows must all have the same length.")
        grid = cls(rows, cols, owner=owner)
        for row, line in enumerate(layout):
            for col, has_ship in enumerate(line):
                grid.cells[row][col].has_ship_truth = bool(has_ship)
        return grid

    def in_range(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def cell_at(self, row: int, col: int) -> Cell:
        """Return the cell at ``(row, col)`` or raise ``OutOfRangeError``."""
        if not self.in_range(row, col):
            raise OutOfRangeError(row, col, self.rows, self.cols)
        return self.cells[row][col]

    def is_fired(self, row: int, col: int) -> bool:
        """Off-grid positions count as not fired."""
        return self.in_range(row, col) and self.cells[row][col].fired

    def is_confirmed_ship(self, row: int, col: int) -> bool:
        """Off-grid positions count as not confirmed."""
        return self.in_range(row, col) and self.cells[row][col].confirmed_ship

    def mark_fired(self, row: int, col: int, *, excluded: bool = False) -> Cell:
        """Record a shot (or an auto-exclusion) as a miss until confirmed otherwise."""
        with tracer.start_as_current_span("grid.mark_fired") as span:
            span.set_attribute("cell.row", row)
            span.set_attribute("cell.col", col)
            span.set_attribute("grid.owner", self.owner)
            cell = self.cell_at(row, col)
            if cell.fired:
                logger.error(
                    "cell_already_fired",
                    extra={"row": row, "col": col, "owner": self.owner},
                )
                raise AlreadyFiredError(row, col)
            cell.state = CellState.MISS
            cell.excluded = excluded
            SHOT_COUNTER.add(
                1, attributes={"owner": self.owner, "source": "excluded" if excluded else "shot"}
            )
            return cell

    def mark_confirmed_ship(self, row: int, col: int) -> Cell:
        cell = self.cell_at(row, col)
        if not cell.fired:
            logger.error(
                "confirm_unfired_cell",
                extra={"row": row, "col": col, "owner": self.owner},
            )
            raise PreconditionError(f"Cell ({row}, {col}) must be fired before it is confirmed.")
        cell.state = CellState.HIT
        cell.excluded = False
        logger.debug("cell_confirmed_ship", extra={"row": row, "col": col, "owner": self.owner})
        return cell

    def mark_sunk(self, row: int, col: int) -> None:
        cell = self.cell_at(row, col)
        if not cell.confirmed_ship:
            logger.error(
                "sink_unconfirmed_cell",
                extra={"row": row, "col": col, "owner": self.owner, "state": cell.state.value},
            )
            raise PreconditionError(f"Cell ({row}, {col}) is not a confirmed ship.")
        cell.sunk = True

    def snapshot(self) -> list[tuple[CellState, bool, bool]]:
        return [(cell.state, cell.excluded, cell.sunk) for cell in self]

    def restore(self, snapshot: Sequence[tuple[CellState, bool, bool]]) -> None:
        """Put every cell back to a state taken with :meth:`snapshot`."""
        for cell, (state, excluded, sunk) in zip(self, snapshot, strict=True):
            cell.state = state
            cell.excluded = excluded
            cell.sunk = sunk

    def neighbors4(self, row: int, col: int) -> list[Coordinate]:
        """Up, down, left and right positions that exist on the grid."""
        return self._neighbors(row, col, AXIS_DELTAS)

    def neighbors8(self, row: int, col: int) -> list[Coordinate]:
        """All eight surrounding positions that exist on the grid."""
        return self._neighbors(row, col, RING_DELTAS)

    def count_confirmed_ship_cells(self) -> int:
        return sum(1 for cell in self if cell.confirmed_ship)

    def unfired_cells(self) -> list[Coordinate]:
        return [Coordinate(cell.row, cell.col) for cell in self if not cell.fired]

    def __iter__(self) -> Iterator[Cell]:
        for line in self.cells:
            yield from line

    def _neighbors(
        self, row: int, col: int, deltas: Sequence[tuple[int, int]]
    ) -> list[Coordinate]:
        return [
            Coordinate(row + delta_row, col + delta_col)
            for delta_row, delta_col in deltas
            if self.in_range(row + delta_row, col + delta_col)
        ]
