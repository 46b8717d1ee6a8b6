"""Terminal driver: play against a human opponent who answers hit/miss questions."""

from __future__ import annotations

import argparse
import random
import string

from broadside.api import current_turn, fire, outcome, start_match
from broadside.engine.errors import BroadsideError
from broadside.engine.grid import Cell, Coordinate, Grid
from broadside.engine.layout import random_layout
from broadside.engine.match import FireResult, MatchController, MatchPhase, Outcome, Side, ShotResult
from broadside.engine.settings import MatchSettings
from broadside.telemetry import init_telemetry, shutdown_telemetry

COL_LABELS = string.ascii_uppercase


def _label(row: int, col: int) -> str:
    return f"{COL_LABELS[col]}{row + 1}"


def _coordinate_from_input(text: str, rows: int, cols: int) -> Coordinate:
    cleaned = text.strip().upper()
    if len(cleaned) < 2 or not cleaned[0].isalpha():
        raise ValueError("Use a column letter followed by a row number, e.g. C4.")
    col = COL_LABELS.index(cleaned[0])
    try:
        row = int(cleaned[1:]) - 1
    except ValueError as exc:
        raise ValueError(f"Row must be a number between 1 and {rows}.") from exc
    if row not in range(rows) or col not in range(cols):
        raise ValueError(f"Coordinates must be within A1-{_label(rows - 1, cols - 1)}.")
    return Coordinate(row, col)


def _symbol(cell: Cell, show_ships: bool) -> str:
    if cell.sunk:
        return "#"
    if cell.confirmed_ship:
        return "X"
    if cell.excluded:
        return "~"
    if cell.fired:
        return "o"
    return "S" if show_ships and cell.has_ship_truth else "."


def _format_grid(grid: Grid, show_ships: bool) -> str:
    header = "    " + " ".join(f"{COL_LABELS[col]:>2}" for col in range(grid.cols))
    lines = [header]
    for row, cells in enumerate(grid.cells):
        symbols = " ".join(f"{_symbol(cell, show_ships):>2}" for cell in cells)
        lines.append(f"{row + 1:>2} |{symbols}")
    return "\n".join(lines)


def _ask_yes_no(question: str) -> bool:
    while True:
        raw = input(f"{question} [y/n]: ").strip().lower()
        if raw in {"y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please answer with 'y' or 'n'.")


def _ask_coordinate(question: str, controller: MatchController, attacker: Side) -> Coordinate:
    grid = controller.attacked_grid(attacker)
    valid = set(controller.valid_targets(attacker))
    while True:
        raw = input(f"{question} (e.g. C4, 'q' to quit): ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            coord = _coordinate_from_input(raw, grid.rows, grid.cols)
        except ValueError as exc:
            print(f"Invalid input: {exc}")
            continue
        if coord not in valid:
            print("That cell is already resolved. Choose another.")
            continue
        return coord


def _describe(attacker: Side, coord: Coordinate, result: FireResult) -> str:
    who = "You" if attacker is Side.PLAYER else "Opponent"
    text = f"{who} fired at {_label(*coord)}: {result.result.value}"
    if result.result is ShotResult.HIT_AND_SUNK:
        text += f" (size {result.sunk_ship_size} ship sunk)"
    if result.also_sunk:
        text += f"; also sunk: {', '.join(str(size) for size in result.also_sunk)}"
    if result.auto_excluded_cells:
        text += f"; {len(result.auto_excluded_cells)} cells ruled out"
    return text


def play_match(settings: MatchSettings, seed: int | None = None) -> Outcome:
    rng = random.Random(seed)
    layout = random_layout(settings.rows, settings.cols, settings.number_of_ships, rng)
    controller = start_match(
        settings.rows,
        settings.cols,
        settings.number_of_ships,
        player_goes_first=_ask_yes_no("Do you go first?"),
        player_ship_layout=layout,
        opponent_oracle=lambda row, col: _ask_yes_no(
            f"Does opponent have a ship at {_label(row, col)}?"
        ),
    )

    while controller.phase is not MatchPhase.MATCH_OVER:
        attacker = current_turn(controller)
        print("\nYour fleet:")
        print(_format_grid(controller.own_grid, show_ships=True))
        print("\nEnemy waters:")
        print(_format_grid(controller.target_grid, show_ships=False))
        question = (
            "Where do you want to fire?"
            if attacker is Side.PLAYER
            else "Where did your opponent fire?"
        )
        coord = _ask_coordinate(question, controller, attacker)
        try:
            result = fire(controller, attacker, *coord)
        except BroadsideError as exc:
            print(f"Shot rejected: {exc}")
            continue
        print(_describe(attacker, coord, result))

    final = outcome(controller)
    if final is Outcome.WON_BY_PLAYER:
        print("\nEvery enemy ship is down. You won!")
    else:
        print("\nYour fleet is gone. The opponent won this time.")
    return final


def main() -> None:
    defaults = MatchSettings.from_env()
    parser = argparse.ArgumentParser(description="Play Broadside against a human opponent.")
    parser.add_argument("--rows", type=int, default=defaults.rows)
    parser.add_argument("--cols", type=int, default=defaults.cols)
    parser.add_argument("--ships", type=int, default=defaults.number_of_ships)
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for your fleet layout."
    )
    args = parser.parse_args()
    settings = MatchSettings(rows=args.rows, cols=args.cols, number_of_ships=args.ships)
    init_telemetry()
    try:
        play_match(settings, seed=args.seed)
    finally:
        shutdown_telemetry()


if __name__ == "__main__":
    main()
