"""Tests for ship inference, sinking detection and border exclusion."""

import pytest

from broadside.engine.errors import PreconditionError
from broadside.engine.fleet import Fleet
from broadside.engine.grid import Grid
from broadside.engine.locator import Orientation, ShipLocator


def _hit(grid: Grid, row: int, col: int) -> None:
    grid.mark_fired(row, col)
    grid.mark_confirmed_ship(row, col)


def _locator(rows: int, cols: int, ships: int) -> ShipLocator:
    return ShipLocator(Grid(rows, cols, owner="opponent"), Fleet(ships, owner="opponent"))


def test_isolated_hit_with_open_neighbours_stays_open() -> None:
    locator = _locator(5, 5, 3)
    _hit(locator.grid, 2, 2)

    result = locator.locate(2, 2)

    assert not result.sunk
    assert result.run.orientation is None
    assert result.run.cells == ((2, 2),)
    assert result.excluded == ()
    assert locator.fleet.largest_unsunk_size() == 3


def test_isolated_hit_closed_on_all_sides_is_a_single_cell_ship() -> None:
    locator = _locator(3, 3, 3)
    for row, col in [(0, 1), (1, 0), (1, 1)]:
        locator.grid.mark_fired(row, col)
    _hit(locator.grid, 0, 0)

    result = locator.locate(0, 0)

    assert result.sunk_size == 1
    assert result.excluded == ()
    assert locator.fleet.is_sunk(1)
    assert locator.grid.cell_at(0, 0).sunk


def test_vertical_run_and_boundaries() -> None:
    locator = _locator(5, 5, 3)
    _hit(locator.grid, 1, 2)
    _hit(locator.grid, 2, 2)

    run = locator.find_run(2, 2)

    assert run.orientation is Orientation.VERTICAL
    assert run.cells == ((1, 2), (2, 2))
    assert run.boundaries == ((0, 2), (3, 2))


def test_run_closed_by_edge_and_miss_sinks_a_smaller_ship() -> None:
    locator = _locator(5, 5, 3)
    locator.grid.mark_fired(0, 2)
    _hit(locator.grid, 0, 0)
    assert not locator.locate(0, 0).sunk

    _hit(locator.grid, 0, 1)
    result = locator.locate(0, 1)

    assert result.run.orientation is Orientation.HORIZONTAL
    assert result.sunk_size == 2
    assert result.excluded == ((1, 0), (1, 1), (1, 2))
    assert locator.fleet.largest_unsunk_size() == 3
    for row, col in result.excluded:
        cell = locator.grid.cell_at(row, col)
        assert cell.fired and cell.excluded and not cell.confirmed_ship


def test_run_matching_largest_ship_sinks_with_open_ends() -> None:
    locator = _locator(5, 5, 2)
    _hit(locator.grid, 2, 1)
    _hit(locator.grid, 2, 2)

    result = locator.locate(2, 2)

    assert result.sunk_size == 2
    expected = sorted(
        (row, col) for row in range(1, 4) for col in range(0, 4) if (row, col) not in {(2, 1), (2, 2)}
    )
    assert list(result.excluded) == expected
    assert locator.fleet.largest_unsunk_size() == 1


def test_open_run_shorter_than_largest_is_not_committed() -> None:
    locator = _locator(5, 5, 3)
    _hit(locator.grid, 2, 1)
    _hit(locator.grid, 2, 2)

    result = locator.locate(2, 1)

    assert not result.sunk
    assert len(result.run) == 2
    assert locator.fleet.unsunk_sizes() == [1, 2, 3]
    assert not locator.grid.is_fired(2, 3)


def test_locate_requires_fresh_confirmed_hit() -> None:
    locator = _locator(3, 3, 1)
    with pytest.raises(PreconditionError):
        locator.locate(0, 0)

    locator.grid.mark_fired(0, 0)
    with pytest.raises(PreconditionError):
        locator.locate(0, 0)

    _hit(locator.grid, 2, 2)
    assert locator.locate(2, 2).sunk
    with pytest.raises(PreconditionError):
        locator.locate(2, 2)


def test_sweep_picks_up_smaller_ship_once_it_is_the_largest() -> None:
    locator = _locator(5, 5, 2)
    _hit(locator.grid, 4, 4)
    assert not locator.locate(4, 4).sunk

    _hit(locator.grid, 0, 0)
    _hit(locator.grid, 0, 1)
    assert locator.locate(0, 1).sunk_size == 2

    swept = locator.sweep()

    assert [item.sunk_size for item in swept] == [1]
    assert swept[0].excluded == ((3, 3), (3, 4), (4, 3))
    assert locator.fleet.all_sunk()
    assert locator.sweep() == []


def test_inner_hit_with_unfired_diagonal_stays_open() -> None:
    locator = _locator(5, 5, 3)
    for row, col in [(1, 2), (3, 2), (2, 1), (2, 3), (1, 1), (1, 3), (3, 1)]:
        locator.grid.mark_fired(row, col)
    _hit(locator.grid, 2, 2)

    result = locator.locate(2, 2)

    assert not result.sunk
    assert result.run.orientation is None
    assert locator.fleet.unsunk_sizes() == [1, 2, 3]

    locator.grid.mark_fired(3, 3)
    swept = locator.sweep()

    assert [item.sunk_size for item in swept] == [1]
    assert swept[0].excluded == ()
    assert locator.grid.cell_at(2, 2).sunk


def test_vertical_run_closed_by_misses_sinks_a_smaller_ship() -> None:
    locator = _locator(5, 5, 3)
    locator.grid.mark_fired(0, 1)
    locator.grid.mark_fired(3, 1)
    _hit(locator.grid, 1, 1)
    _hit(locator.grid, 2, 1)

    result = locator.locate(2, 1)

    assert result.run.orientation is Orientation.VERTICAL
    assert result.run.cells == ((1, 1), (2, 1))
    assert result.sunk_size == 2
    assert result.excluded == ((0, 0), (0, 2), (1, 0), (1, 2), (2, 0), (2, 2), (3, 0), (3, 2))
    assert locator.fleet.largest_unsunk_size() == 3
