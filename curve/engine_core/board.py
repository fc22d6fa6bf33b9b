"""
Board - Fixed rows x cols grid of tile -> unit id.

Pure spatial bookkeeping: no rules, no side effects beyond the grid.
Failures are boolean returns; nothing here raises.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """A tile coordinate. Row 0 is player 2's spawn row."""
    row: int
    col: int

    def offset(self, drow: int = 0, dcol: int = 0) -> Position:
        return Position(self.row + drow, self.col + dcol)


class Board:
    """Grid of unit IDs (or None for empty tiles)."""

    def __init__(self, rows: int, cols: int):
        self.rows = rows
        self.cols = cols
        self.tiles: list[list[str | None]] = [[None] * cols for _ in range(rows)]

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.row < self.rows and 0 <= pos.col < self.cols

    def place(self, unit_id: str, pos: Position) -> bool:
        """Occupy an empty in-bounds tile."""
        if not self.in_bounds(pos):
            return False
        if self.tiles[pos.row][pos.col] is not None:
            return False
        self.tiles[pos.row][pos.col] = unit_id
        return True

    def remove(self, pos: Position) -> bool:
        """Clear a tile (clearing an empty tile is fine)."""
        if not self.in_bounds(pos):
            return False
        self.tiles[pos.row][pos.col] = None
        return True

    def move(self, src: Position, dst: Position) -> bool:
        """Relocate the occupant of src to an empty dst."""
        if not self.in_bounds(src) or not self.in_bounds(dst):
            return False
        unit_id = self.tiles[src.row][src.col]
        if unit_id is None:
            return False
        if self.tiles[dst.row][dst.col] is not None:
            return False
        self.tiles[src.row][src.col] = None
        self.tiles[dst.row][dst.col] = unit_id
        return True

    def occupant(self, pos: Position) -> str | None:
        if not self.in_bounds(pos):
            return None
        return self.tiles[pos.row][pos.col]

    def is_empty(self, pos: Position) -> bool:
        """True for an in-bounds tile with no unit."""
        return self.in_bounds(pos) and self.tiles[pos.row][pos.col] is None

    def row_positions(self, row: int) -> list[Position]:
        return [Position(row, col) for col in range(self.cols)]

    def occupied(self) -> dict[str, Position]:
        """Reverse mapping unit id -> position."""
        return {
            unit_id: Position(r, c)
            for r, row in enumerate(self.tiles)
            for c, unit_id in enumerate(row)
            if unit_id is not None
        }
