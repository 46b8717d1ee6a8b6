"""Fleet catalogue: one ship per size, addressed by size."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from broadside.telemetry import get_meter

from .errors import AlreadySunkError, NoSuchSizeError

logger = logging.getLogger(__name__)
meter = get_meter("broadside.engine.fleet")

SUNK_COUNTER = meter.create_counter(
    "broadside_engine_ships_sunk",
    unit="1",
    description="Ships marked as sunk",
)


@dataclass
class Ship:
    """A single fleet entry."""

    size: int
    sunk: bool = False


@dataclass
class Fleet:
    """Ships of sizes ``1..N`` with monotonic sunk flags."""

    number_of_ships: int
    owner: str = "unknown"
    ships: dict[int, Ship] = field(init=False)

    def __post_init__(self) -> None:
        if self.number_of_ships < 1:
            raise ValueError("A fleet needs at least one ship.")
        self.ships = {size: Ship(size) for size in range(1, self.number_of_ships + 1)}

    @property
    def total_ship_cells(self) -> int:
        """Cells covered by the whole fleet, ``N(N+1)/2``."""
        return self.number_of_ships * (self.number_of_ships + 1) // 2

    def largest_unsunk_size(self) -> int | None:
        unsunk = self.unsunk_sizes()
        return unsunk[-1] if unsunk else None

    def unsunk_sizes(self) -> list[int]:
        return [size for size, ship in self.ships.items() if not ship.sunk]

    def is_sunk(self, size: int) -> bool:
        return self._ship(size).sunk

    def mark_sunk_by_size(self, size: int) -> Ship:
        ship = self._ship(size)
        if ship.sunk:
            logger.error("ship_already_sunk", extra={"size": size, "owner": self.owner})
            raise AlreadySunkError(size)
        ship.sunk = True
        SUNK_COUNTER.add(1, attributes={"owner": self.owner, "size": size})
        logger.info("ship_sunk", extra={"size": size, "owner": self.owner})
        return ship

    def snapshot(self) -> dict[int, bool]:
        return {size: ship.sunk for size, ship in self.ships.items()}

    def restore(self, snapshot: dict[int, bool]) -> None:
        """Undo sinkings made by a shot that was rejected part way through."""
        for size, sunk in snapshot.items():
            self._ship(size).sunk = sunk

    def all_sunk(self) -> bool:
        return all(ship.sunk for ship in self.ships.values())

    def _ship(self, size: int) -> Ship:
        try:
            return self.ships[size]
        except KeyError:
            logger.error("ship_size_unknown", extra={"size": size, "owner": self.owner})
            raise NoSuchSizeError(size) from None
