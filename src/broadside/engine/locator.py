"""Ship inference and sinking detection on the opponent-facing grid.

Only revealed information is read here: which cells were fired and which of
those the opponent confirmed as ship. Ships never share or touch cells (not
even diagonally), so a maximal run of confirmed cells along one axis is
always a piece of exactly one ship, and the ring around a sunk ship is empty.

A run is committed as a sunk ship when either

* its length equals the largest ship still afloat, or
* both of its ends are known not to be ship: for an isolated hit every
  surrounding cell is fired, for an oriented run each end is off-grid or
  fired.

Smaller ships whose ends are still open are picked up by :meth:`sweep` once
they become the largest ship afloat.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from broadside.telemetry import get_meter, get_tracer

from .errors import PreconditionError
from .fleet import Fleet
from .grid import Coordinate, Grid

logger = logging.getLogger(__name__)
tracer = get_tracer("broadside.engine.locator")
meter = get_meter("broadside.engine.locator")

EXCLUDED_COUNTER = meter.create_counter(
    "broadside_engine_cells_excluded",
    unit="1",
    description="Cells auto-excluded around sunk ships",
)


class Orientation(Enum):
    """Axis a run of hits lies on."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @property
    def step(self) -> tuple[int, int]:
        return (0, 1) if self is Orientation.HORIZONTAL else (1, 0)


@dataclass(frozen=True)
class ShipRun:
    """Contiguous confirmed cells plus the two positions that bound them."""

    cells: tuple[Coordinate, ...]
    orientation: Orientation | None
    boundaries: tuple[Coordinate, ...] = ()

    def __len__(self) -> int:
        return len(self.cells)


@dataclass(frozen=True)
class LocateResult:
    run: ShipRun
    sunk_size: int | None = None
    excluded: tuple[Coordinate, ...] = ()

    @property
    def sunk(self) -> bool:
        return self.sunk_size is not None


class ShipLocator:
    """Applies sinking detection for one grid and the fleet defending it."""

    def __init__(self, grid: Grid, fleet: Fleet) -> None:
        self.grid = grid
        self.fleet = fleet

    def locate(self, row: int, col: int) -> LocateResult:
        """Evaluate the ship a freshly confirmed hit at ``(row, col)`` belongs to."""
        with tracer.start_as_current_span("locator.locate") as span:
            span.set_attribute("cell.row", row)
            span.set_attribute("cell.col", col)
            cell = self.grid.cell_at(row, col)
            if not cell.confirmed_ship or cell.sunk:
                logger.error(
                    "locate_precondition_failed",
                    extra={"row": row, "col": col, "state": cell.state.value, "sunk": cell.sunk},
                )
                raise PreconditionError(f"Cell ({row}, {col}) is not a fresh confirmed hit.")

            run = self.find_run(row, col)
            span.set_attribute("run.length", len(run))
            if not self.is_fully_revealed(run):
                logger.debug(
                    "run_still_open",
                    extra={"row": row, "col": col, "length": len(run)},
                )
                return LocateResult(run)
            result = self._commit(run)
            span.set_attribute("run.sunk_size", len(run))
            return result

    def sweep(self) -> list[LocateResult]:
        """Re-evaluate every unsunk run until no further ship can be committed."""
        with tracer.start_as_current_span("locator.sweep") as span:
            results: list[LocateResult] = []
            progressed = True
            while progressed and self.fleet.largest_unsunk_size() is not None:
                progressed = False
                visited: set[Coordinate] = set()
                for cell in self.grid:
                    position = Coordinate(cell.row, cell.col)
                    if not cell.confirmed_ship or cell.sunk or position in visited:
                        continue
                    run = self.find_run(cell.row, cell.col)
                    visited.update(run.cells)
                    if self.is_fully_revealed(run):
                        results.append(self._commit(run))
                        progressed = True
            span.set_attribute("sweep.sunk", len(results))
            return results

    def find_run(self, row: int, col: int) -> ShipRun:
        orientation = self._orientation(row, col)
        if orientation is None:
            return ShipRun((Coordinate(row, col),), None)

        delta_row, delta_col = orientation.step
        start_row, start_col = row, col
        while self.grid.is_confirmed_ship(start_row - delta_row, start_col - delta_col):
            start_row -= delta_row
            start_col -= delta_col

        cells: list[Coordinate] = []
        cur_row, cur_col = start_row, start_col
        while self.grid.is_confirmed_ship(cur_row, cur_col):
            cells.append(Coordinate(cur_row, cur_col))
            cur_row += delta_row
            cur_col += delta_col

        boundaries = (
            Coordinate(start_row - delta_row, start_col - delta_col),
            Coordinate(cur_row, cur_col),
        )
        return ShipRun(tuple(cells), orientation, boundaries)

    def is_fully_revealed(self, run: ShipRun) -> bool:
        if len(run) == self.fleet.largest_unsunk_size():
            return True
        if run.orientation is None:
            hit = run.cells[0]
            return all(self.grid.is_fired(*pos) for pos in self.grid.neighbors8(*hit))
        # Off-grid ends are as good as fired ones.
        return all(
            not self.grid.in_range(*pos) or self.grid.is_fired(*pos) for pos in run.boundaries
        )

    def _orientation(self, row: int, col: int) -> Orientation | None:
        for neighbour in self.grid.neighbors4(row, col):
            if self.grid.is_confirmed_ship(*neighbour):
                return Orientation.HORIZONTAL if neighbour.row == row else Orientation.VERTICAL
        return None

    def _commit(self, run: ShipRun) -> LocateResult:
        size = len(run)
        self.fleet.mark_sunk_by_size(size)
        for position in run.cells:
            self.grid.mark_sunk(*position)

        ring = {
            neighbour
            for position in run.cells
            for neighbour in self.grid.neighbors8(*position)
            if not self.grid.is_fired(*neighbour)
        }
        excluded = tuple(sorted(ring))
        for position in excluded:
            self.grid.mark_fired(*position, excluded=True)

        EXCLUDED_COUNTER.add(len(excluded), attributes={"owner": self.grid.owner})
        logger.info(
            "border_excluded",
            extra={
                "owner": self.grid.owner,
                "size": size,
                "start": tuple(run.cells[0]),
                "excluded": len(excluded),
            },
        )
        return LocateResult(run, sunk_size=size, excluded=excluded)
