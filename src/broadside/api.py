"""Entry points for embedding the engine in a presentation layer."""

from __future__ import annotations

from typing import Sequence

from broadside.engine.errors import InvalidMatchStateError
from broadside.engine.grid import Grid
from broadside.engine.instrumented_match import InstrumentedMatchController
from broadside.engine.match import FireResult, HitOracle, MatchController, Outcome, Side
from broadside.engine.settings import MatchSettings


def start_match(
    rows: int,
    cols: int,
    number_of_ships: int,
    player_goes_first: bool,
    player_ship_layout: Sequence[Sequence[bool]],
    opponent_oracle: HitOracle,
) -> MatchController:
    """Create a match and leave it waiting on the first mover's shot.

    ``player_ship_layout`` is a ``rows x cols`` boolean matrix of the
    player's own ships. ``opponent_oracle(row, col)`` answers whether the
    opponent has a ship at a cell the player fires on.
    """
    settings = MatchSettings(rows=rows, cols=cols, number_of_ships=number_of_ships)
    own_grid = Grid.from_layout(player_ship_layout, owner=Side.PLAYER.value)
    if (own_grid.rows, own_grid.cols) != (settings.rows, settings.cols):
        raise ValueError(
            f"Ship layout is {own_grid.rows}x{own_grid.cols}, expected {settings.rows}x{settings.cols}."
        )
    target_grid = Grid(settings.rows, settings.cols, owner=Side.OPPONENT.value)
    controller = InstrumentedMatchController(
        own_grid, target_grid, settings.number_of_ships, opponent_oracle
    )
    controller.choose_first_mover(player_goes_first)
    return controller


def fire(controller: MatchController, attacker_side: Side, row: int, col: int) -> FireResult:
    return controller.fire(attacker_side, row, col)


def current_turn(controller: MatchController) -> Side:
    """Side expected to fire next; after the match ends, the side that fired last."""
    if controller.current_side is None:
        raise InvalidMatchStateError("The first mover has not been chosen yet.")
    return controller.current_side


def outcome(controller: MatchController) -> Outcome:
    return controller.outcome
