"""Tests for layout helpers and match settings."""

import random

import pytest
from pydantic import ValidationError

from broadside.engine.grid import RING_DELTAS
from broadside.engine.layout import parse_layout, random_layout, ship_segments
from broadside.engine.settings import MatchSettings


def test_parse_layout_and_segments() -> None:
    layout = parse_layout(
        """
        ##..
        ....
        ...#
        ...#
        """
    )
    assert layout[0] == [True, True, False, False]
    segments = ship_segments(layout)
    assert segments == [((0, 0), (0, 1)), ((2, 3), (3, 3))]


@pytest.mark.parametrize("seed", [0, 1, 7, 42])
def test_random_layout_places_separated_fleet(seed: int) -> None:
    layout = random_layout(10, 10, 4, random.Random(seed))
    segments = ship_segments(layout)
    assert sorted(len(segment) for segment in segments) == [1, 2, 3, 4]

    owner = {cell: index for index, segment in enumerate(segments) for cell in segment}
    for (row, col), index in owner.items():
        for delta_row, delta_col in RING_DELTAS:
            neighbour = (row + delta_row, col + delta_col)
            assert owner.get(neighbour, index) == index


def test_random_layout_rejects_impossible_fleet() -> None:
    with pytest.raises(ValueError):
        random_layout(2, 2, 2, random.Random(0))


def test_match_settings_defaults_and_validation() -> None:
    settings = MatchSettings()
    assert (settings.rows, settings.cols, settings.number_of_ships) == (10, 10, 4)
    assert settings.total_ship_cells == 10

    with pytest.raises(ValidationError):
        MatchSettings(rows=0)
    with pytest.raises(ValidationError):
        MatchSettings(rows=3, cols=3, number_of_ships=4)


def test_match_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BROADSIDE_ROWS", "6")
    monkeypatch.setenv("BROADSIDE_COLS", "7")
    monkeypatch.setenv("BROADSIDE_SHIPS", "3")
    settings = MatchSettings.from_env()
    assert (settings.rows, settings.cols, settings.number_of_ships) == (6, 7, 3)

    assert MatchSettings.from_env(number_of_ships=2).number_of_ships == 2
