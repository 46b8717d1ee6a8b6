"""Tests for the terminal driver."""

import pytest

from broadside import cli
from broadside.engine.grid import Coordinate, Grid
from broadside.engine.match import Outcome
from broadside.engine.settings import MatchSettings


def test_coordinate_parsing() -> None:
    assert cli._coordinate_from_input("c4", 10, 10) == Coordinate(3, 2)
    assert cli._coordinate_from_input(" A1 ", 10, 10) == Coordinate(0, 0)
    for text in ["", "4C", "Z1", "A11", "Ax"]:
        with pytest.raises(ValueError):
            cli._coordinate_from_input(text, 10, 10)


def test_format_grid_marks_cells() -> None:
    grid = Grid.from_layout([[True, False], [False, False]])
    grid.mark_fired(1, 1)
    text = cli._format_grid(grid, show_ships=True)
    lines = text.splitlines()
    assert lines[0].split() == ["A", "B"]
    assert lines[1].endswith("S  .")
    assert lines[2].endswith(".  o")
    assert "S" not in cli._format_grid(grid, show_ships=False)


def test_play_match_against_scripted_answers(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    answers = iter(["y", "B2", "y"])
    monkeypatch.setattr("builtins.input", lambda *_: next(answers))

    result = cli.play_match(MatchSettings(rows=3, cols=3, number_of_ships=1), seed=3)

    assert result is Outcome.WON_BY_PLAYER
    out = capsys.readouterr().out
    assert "You fired at B2: hit-and-sunk" in out
    assert "You won!" in out
