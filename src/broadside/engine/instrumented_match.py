"""MatchController with match-level spans and metrics."""

from __future__ import annotations

import contextlib
import time

from opentelemetry import trace

from broadside.engine.errors import BroadsideError
from broadside.engine.match import FireResult, MatchController, MatchPhase, Side, ShotResult
from broadside.telemetry import get_logger, get_tracer, record_match_metric


class InstrumentedMatchController(MatchController):
    """Adds a span per match plus counters for shots, sinkings and results."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("broadside.engine")
        self._tracer = get_tracer("broadside.engine")
        self._match_span = None
        self._started_at: float | None = None

    def choose_first_mover(self, player_goes_first: bool) -> None:
        super().choose_first_mover(player_goes_first)
        self._started_at = time.perf_counter()
        # Started detached; it is only made current while this match fires.
        self._match_span = self._tracer.start_span("broadside.engine.match")
        self._match_span.set_attribute("first_mover", self.current_side.value)
        record_match_metric(
            "broadside_match_started_total", 1, {"first_mover": self.current_side.value}
        )

    def fire(self, attacker: Side, row: int, col: int) -> FireResult:
        with self._match_context(), self._tracer.start_as_current_span(
            "broadside.engine.fire"
        ) as span:
            span.set_attribute("attacker", attacker.value)
            span.set_attribute("coord.row", row)
            span.set_attribute("coord.col", col)
            try:
                result = super().fire(attacker, row, col)
            except BroadsideError as exc:
                record_match_metric(
                    "broadside_match_invalid_moves_total",
                    1,
                    {"attacker": attacker.value, "reason": type(exc).__name__},
                )
                span.record_exception(exc)
                span.set_attribute("error", True)
                self._logger.error(
                    "Rejected shot from %s at (%d,%d): %s", attacker.value, row, col, exc
                )
                raise

            span.set_attribute("shot_outcome", result.result.value)
            record_match_metric(
                "broadside_shots_by_result_total",
                1,
                {"attacker": attacker.value, "result": result.result.value},
            )
            sunk_count = len(result.also_sunk) + (1 if result.result is ShotResult.HIT_AND_SUNK else 0)
            if sunk_count:
                record_match_metric(
                    "broadside_ships_sunk_total",
                    sunk_count,
                    {"attacker": attacker.value},
                )
            if result.auto_excluded_cells:
                record_match_metric(
                    "broadside_cells_excluded_total",
                    len(result.auto_excluded_cells),
                    {"attacker": attacker.value},
                )

            if self.phase is MatchPhase.MATCH_OVER:
                self._finish_match()
            return result

    def _finish_match(self) -> None:
        duration = (time.perf_counter() - self._started_at) if self._started_at else 0.0
        shots = sum(
            1 for grid in (self.own_grid, self.target_grid) for cell in grid if cell.fired and not cell.excluded
        )
        outcome = self.outcome.value

        record_match_metric("broadside_match_completed_total", 1, {"outcome": outcome})
        record_match_metric("broadside_match_duration_seconds", duration, {"outcome": outcome})

        if self._match_span is not None:
            self._match_span.set_attribute("outcome", outcome)
            self._match_span.set_attribute("shots", shots)
            self._match_span.set_attribute("duration_ms", duration * 1000)
            self._match_span.end()
            self._match_span = None

        self._logger.info("Match finished. outcome=%s shots=%d duration_s=%.3f", outcome, shots, duration)

    def _match_context(self):
        if self._match_span is None:
            return contextlib.nullcontext()
        return trace.use_span(
            self._match_span,
            end_on_exit=False,
            record_exception=False,
            set_status_on_exception=False,
        )
