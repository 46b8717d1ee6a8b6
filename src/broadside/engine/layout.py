"""Helpers for the player's own ship layout.

Layouts are plain ``rows x cols`` boolean matrices, the shape the setup
screen hands over. Placement rules are not checked here; a layout is taken
as legal.
"""

from __future__ import annotations

import logging
import random
from typing import Sequence

from .grid import AXIS_DELTAS, RING_DELTAS, Coordinate

logger = logging.getLogger(__name__)

Layout = list[list[bool]]

MAX_PLACEMENT_ATTEMPTS = 10_000


def parse_layout(text: str, ship: str = "#") -> Layout:
    """Turn a block of text such as ``"#..\\n..."`` into a boolean layout."""
    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    return [[char == ship for char in line] for line in lines]


def ship_segments(layout: Sequence[Sequence[bool]]) -> list[tuple[Coordinate, ...]]:
    """Group ship cells into ships, one tuple of coordinates per ship."""
    rows = len(layout)
    seen: set[Coordinate] = set()
    segments: list[tuple[Coordinate, ...]] = []
    for row in range(rows):
        for col in range(len(layout[row])):
            if not layout[row][col] or (row, col) in seen:
                continue
            segment: list[Coordinate] = []
            stack = [Coordinate(row, col)]
            seen.add(stack[0])
            while stack:
                current = stack.pop()
                segment.append(current)
                for delta_row, delta_col in AXIS_DELTAS:
                    nxt = Coordinate(current.row + delta_row, current.col + delta_col)
                    if nxt in seen or not 0 <= nxt.row < rows:
                        continue
                    if 0 <= nxt.col < len(layout[nxt.row]) and layout[nxt.row][nxt.col]:
                        seen.add(nxt)
                        stack.append(nxt)
            segments.append(tuple(sorted(segment)))
    return segments


def random_layout(rows: int, cols: int, number_of_ships: int, rng: random.Random) -> Layout:
    """Place ships of sizes ``N..1`` so that no two touch, even diagonally."""
    layout: Layout = [[False] * cols for _ in range(rows)]
    blocked: set[Coordinate] = set()
    for size in range(number_of_ships, 0, -1):
        for attempt in range(1, MAX_PLACEMENT_ATTEMPTS + 1):
            horizontal = rng.random() < 0.5
            row_span = rows if horizontal else rows - size + 1
            col_span = cols - size + 1 if horizontal else cols
            if row_span < 1 or col_span < 1:
                continue
            row = rng.randrange(row_span)
            col = rng.randrange(col_span)
            cells = [
                Coordinate(row, col + offset) if horizontal else Coordinate(row + offset, col)
                for offset in range(size)
            ]
            if any(cell in blocked for cell in cells):
                continue
            for cell in cells:
                layout[cell.row][cell.col] = True
                blocked.add(cell)
                blocked.update(
                    Coordinate(cell.row + delta_row, cell.col + delta_col)
                    for delta_row, delta_col in RING_DELTAS
                )
            logger.debug("random_ship_placed", extra={"size": size, "attempts": attempt})
            break
        else:
            raise ValueError(
                f"Could not fit {number_of_ships} ships on a {rows}x{cols} grid."
            )
    return layout
