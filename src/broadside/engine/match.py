"""Turn state machine for a match against a human-operated opponent."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from broadside.telemetry import get_meter, get_tracer

from .errors import AlreadyFiredError, InvalidMatchStateError, OutOfRangeError, PreconditionError
from .fleet import Fleet
from .grid import Coordinate, Grid
from .layout import ship_segments
from .locator import LocateResult, ShipLocator

logger = logging.getLogger(__name__)
tracer = get_tracer("broadside.engine.match")
meter = get_meter("broadside.engine.match")

MOVE_COUNTER = meter.create_counter(
    "broadside_engine_moves",
    unit="1",
    description="Shots resolved by MatchController",
)

HitOracle = Callable[[int, int], bool]
"""Answers whether the opponent has a ship at ``(row, col)``."""


class Side(Enum):
    """The two sides of a match."""

    PLAYER = "player"
    OPPONENT = "opponent"

    def other(self) -> Side:
        return Side.OPPONENT if self is Side.PLAYER else Side.PLAYER


class MatchPhase(Enum):
    AWAITING_FIRST_MOVE = "awaiting_first_move"
    PLAYER_TURN = "player_turn"
    OPPONENT_TURN = "opponent_turn"
    MATCH_OVER = "match_over"


class Outcome(Enum):
    ONGOING = "ongoing"
    WON_BY_PLAYER = "won-by-player"
    WON_BY_OPPONENT = "won-by-opponent"


class ShotResult(Enum):
    MISS = "miss"
    HIT = "hit"
    HIT_AND_SUNK = "hit-and-sunk"


TURN_PHASES = {Side.PLAYER: MatchPhase.PLAYER_TURN, Side.OPPONENT: MatchPhase.OPPONENT_TURN}
WIN_OUTCOMES = {Side.PLAYER: Outcome.WON_BY_PLAYER, Side.OPPONENT: Outcome.WON_BY_OPPONENT}


@dataclass(frozen=True)
class FireResult:
    """Structured outcome of one resolved shot.

    ``also_sunk`` lists ships recognised from earlier hits during the same
    shot; their excluded cells are part of ``auto_excluded_cells``.
    """

    result: ShotResult
    sunk_ship_size: int | None = None
    auto_excluded_cells: tuple[Coordinate, ...] = ()
    also_sunk: tuple[int, ...] = ()


@dataclass(frozen=True)
class MatchState:
    """Immutable snapshot of a match for renderers."""

    phase: MatchPhase
    current_side: Side | None
    outcome: Outcome
    sunk_sizes: dict[Side, tuple[int, ...]] = field(default_factory=dict)
    confirmed_cells: dict[Side, int] = field(default_factory=dict)


class MatchController:
    """Drives turns, resolves shots and checks for a winner.

    ``own_grid`` holds the player's fleet with its truth; ``target_grid`` is
    the player's view of the opponent's waters and only ever holds what the
    opponent confirmed.
    """

    def __init__(
        self,
        own_grid: Grid,
        target_grid: Grid,
        number_of_ships: int,
        opponent_oracle: HitOracle,
    ) -> None:
        if (own_grid.rows, own_grid.cols) != (target_grid.rows, target_grid.cols):
            raise ValueError("Both grids must have the same dimensions.")
        self.own_grid = own_grid
        self.target_grid = target_grid
        self.fleets: dict[Side, Fleet] = {
            Side.PLAYER: Fleet(number_of_ships, owner=Side.PLAYER.value),
            Side.OPPONENT: Fleet(number_of_ships, owner=Side.OPPONENT.value),
        }
        self.locator = ShipLocator(target_grid, self.fleets[Side.OPPONENT])
        self.phase: MatchPhase = MatchPhase.AWAITING_FIRST_MOVE
        self.current_side: Side | None = None
        self.outcome: Outcome = Outcome.ONGOING
        self._oracle = opponent_oracle
        truth = [[cell.has_ship_truth for cell in line] for line in own_grid.cells]
        self._own_segments: dict[Coordinate, tuple[Coordinate, ...]] = {
            position: segment for segment in ship_segments(truth) for position in segment
        }

    def choose_first_mover(self, player_goes_first: bool) -> None:
        if self.phase is not MatchPhase.AWAITING_FIRST_MOVE:
            raise InvalidMatchStateError("The first mover has already been chosen.")
        self.current_side = Side.PLAYER if player_goes_first else Side.OPPONENT
        self.phase = TURN_PHASES[self.current_side]
        logger.info("match_started", extra={"first_mover": self.current_side.value})

    def attacked_grid(self, attacker: Side) -> Grid:
        return self.target_grid if attacker is Side.PLAYER else self.own_grid

    def fire(self, attacker: Side, row: int, col: int) -> FireResult:
        """Resolve one shot by ``attacker`` and advance the turn."""
        with tracer.start_as_current_span("match.fire") as span:
            span.set_attribute("attacker", attacker.value)
            span.set_attribute("row", row)
            span.set_attribute("col", col)
            self._ensure_can_fire(attacker)

            grid = self.attacked_grid(attacker)
            if not grid.in_range(row, col):
                logger.error(
                    "shot_out_of_range",
                    extra={"attacker": attacker.value, "row": row, "col": col},
                )
                raise OutOfRangeError(row, col, grid.rows, grid.cols)
            if grid.is_fired(row, col):
                logger.error(
                    "shot_duplicate",
                    extra={"attacker": attacker.value, "row": row, "col": col},
                )
                raise AlreadyFiredError(row, col)

            defender = attacker.other()
            saved_cells = grid.snapshot()
            saved_fleet = self.fleets[defender].snapshot()
            try:
                if attacker is Side.PLAYER:
                    result = self._resolve_player_shot(row, col)
                else:
                    result = self._resolve_opponent_shot(row, col)
            except PreconditionError:
                # A contradictory answer must not leave half a sinking behind.
                grid.restore(saved_cells)
                self.fleets[defender].restore(saved_fleet)
                logger.error(
                    "shot_rolled_back",
                    extra={"attacker": attacker.value, "row": row, "col": col},
                )
                raise
            span.set_attribute("shot.outcome", result.result.value)
            logger.info(
                "shot_resolved",
                extra={
                    "attacker": attacker.value,
                    "row": row,
                    "col": col,
                    "result": result.result.value,
                    "sunk_size": result.sunk_ship_size,
                    "excluded": len(result.auto_excluded_cells),
                },
            )

            if grid.count_confirmed_ship_cells() == self.fleets[defender].total_ship_cells:
                self.phase = MatchPhase.MATCH_OVER
                self.outcome = WIN_OUTCOMES[attacker]
                span.set_attribute("match.outcome", self.outcome.value)
                logger.info(
                    "match_finished",
                    extra={
                        "outcome": self.outcome.value,
                        "fleet_sunk": self.fleets[defender].all_sunk(),
                    },
                )
            else:
                self.current_side = defender
                self.phase = TURN_PHASES[defender]
                span.set_attribute("next_side", defender.value)

            MOVE_COUNTER.add(
                1, attributes={"result": result.result.value, "attacker": attacker.value}
            )
            return result

    def valid_targets(self, attacker: Side) -> list[Coordinate]:
        """Cells ``attacker`` may still fire at."""
        if self.phase in (MatchPhase.AWAITING_FIRST_MOVE, MatchPhase.MATCH_OVER):
            return []
        return self.attacked_grid(attacker).unfired_cells()

    def get_state(self) -> MatchState:
        return MatchState(
            phase=self.phase,
            current_side=self.current_side,
            outcome=self.outcome,
            sunk_sizes={
                side: tuple(size for size, ship in fleet.ships.items() if ship.sunk)
                for side, fleet in self.fleets.items()
            },
            confirmed_cells={
                side: self.attacked_grid(side).count_confirmed_ship_cells() for side in Side
            },
        )

    def _ensure_can_fire(self, attacker: Side) -> None:
        if self.phase is MatchPhase.AWAITING_FIRST_MOVE:
            logger.error("shot_rejected_before_start", extra={"attacker": attacker.value})
            raise InvalidMatchStateError("Choose who goes first before firing.")
        if self.phase is MatchPhase.MATCH_OVER:
            logger.error("shot_rejected_match_over", extra={"attacker": attacker.value})
            raise InvalidMatchStateError("The match is over.")
        if attacker is not self.current_side:
            logger.error(
                "shot_rejected_wrong_side",
                extra={"attacker": attacker.value, "current": self.current_side.value},
            )
            raise InvalidMatchStateError(f"It is not the {attacker.value}'s turn.")

    def _resolve_player_shot(self, row: int, col: int) -> FireResult:
        # Ask before mutating so a failing oracle leaves the grid untouched.
        is_hit = bool(self._oracle(row, col))
        self.target_grid.mark_fired(row, col)
        located: LocateResult | None = None
        if is_hit:
            self.target_grid.mark_confirmed_ship(row, col)
            located = self.locator.locate(row, col)
        swept = self.locator.sweep()

        excluded = list(located.excluded) if located else []
        excluded.extend(pos for item in swept for pos in item.excluded)
        excluded.sort()
        also_sunk = tuple(item.sunk_size for item in swept if item.sunk_size is not None)
        if located is None:
            result = ShotResult.MISS
        elif located.sunk:
            result = ShotResult.HIT_AND_SUNK
        else:
            result = ShotResult.HIT
        return FireResult(
            result=result,
            sunk_ship_size=located.sunk_size if located else None,
            auto_excluded_cells=tuple(excluded),
            also_sunk=also_sunk,
        )

    def _resolve_opponent_shot(self, row: int, col: int) -> FireResult:
        cell = self.own_grid.mark_fired(row, col)
        if not cell.has_ship_truth:
            return FireResult(ShotResult.MISS)

        self.own_grid.mark_confirmed_ship(row, col)
        segment = self._own_segments[Coordinate(row, col)]
        if not all(self.own_grid.is_confirmed_ship(*position) for position in segment):
            return FireResult(ShotResult.HIT)

        self.fleets[Side.PLAYER].mark_sunk_by_size(len(segment))
        for position in segment:
            self.own_grid.mark_sunk(*position)
        return FireResult(ShotResult.HIT_AND_SUNK, sunk_ship_size=len(segment))
