"""Tests for Grid cell tracking and adjacency."""

import logging

import pytest

from broadside.engine.errors import AlreadyFiredError, OutOfRangeError, PreconditionError
from broadside.engine.grid import CellState, Coordinate, Grid


def test_cell_at_rejects_out_of_range() -> None:
    grid = Grid(3, 4)
    assert grid.cell_at(2, 3).state is CellState.UNFIRED
    for row, col in [(-1, 0), (3, 0), (0, 4), (0, -1)]:
        with pytest.raises(OutOfRangeError):
            grid.cell_at(row, col)


def test_mark_fired_twice_raises() -> None:
    grid = Grid(3, 3)
    cell = grid.mark_fired(1, 1)
    assert cell.fired
    assert not cell.confirmed_ship
    with pytest.raises(AlreadyFiredError):
        grid.mark_fired(1, 1)


def test_confirmed_ship_requires_fired_cell() -> None:
    grid = Grid(3, 3)
    with pytest.raises(PreconditionError):
        grid.mark_confirmed_ship(0, 0)

    grid.mark_fired(0, 0)
    cell = grid.mark_confirmed_ship(0, 0)
    assert cell.state is CellState.HIT
    assert cell.fired and cell.confirmed_ship
    assert grid.count_confirmed_ship_cells() == 1


def test_rejected_marks_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    grid = Grid(2, 2, owner="opponent")
    with caplog.at_level(logging.ERROR, logger="broadside.engine.grid"):
        with pytest.raises(PreconditionError):
            grid.mark_confirmed_ship(0, 1)
        grid.mark_fired(1, 0)
        with pytest.raises(PreconditionError):
            grid.mark_sunk(1, 0)

    assert [record.getMessage() for record in caplog.records] == [
        "confirm_unfired_cell",
        "sink_unconfirmed_cell",
    ]
    assert (caplog.records[0].row, caplog.records[0].col) == (0, 1)
    assert caplog.records[1].state == "fired-miss"


def test_snapshot_and_restore_round_trip_cell_flags() -> None:
    grid = Grid(2, 2)
    grid.mark_fired(0, 0)
    saved = grid.snapshot()

    grid.mark_confirmed_ship(0, 0)
    grid.mark_sunk(0, 0)
    grid.mark_fired(1, 1, excluded=True)
    grid.restore(saved)

    assert grid.cell_at(0, 0).state is CellState.MISS and not grid.cell_at(0, 0).sunk
    assert not grid.is_fired(1, 1) and not grid.cell_at(1, 1).excluded


def test_neighbourhoods_clip_to_grid() -> None:
    grid = Grid(3, 3)
    assert sorted(grid.neighbors4(0, 0)) == [(0, 1), (1, 0)]
    assert sorted(grid.neighbors8(0, 0)) == [(0, 1), (1, 0), (1, 1)]
    assert len(grid.neighbors4(1, 1)) == 4
    assert len(grid.neighbors8(1, 1)) == 8
    assert grid.neighbors8(1, 1)[0] == Coordinate(0, 0)


def test_single_cell_grid_has_no_neighbours() -> None:
    grid = Grid(1, 1)
    assert grid.neighbors4(0, 0) == []
    assert grid.neighbors8(0, 0) == []


def test_from_layout_loads_truth_and_rejects_ragged_rows() -> None:
    grid = Grid.from_layout([[True, False], [False, False]])
    assert grid.cell_at(0, 0).has_ship_truth
    assert not grid.cell_at(1, 1).has_ship_truth
    assert len(grid.unfired_cells()) == 4

    with pytest.raises(ValueError):
        Grid.from_layout([[True, False], [False]])
