"""
Tests for the board grid.

Tests:
- Placement and bounds
- Movement and removal
- Reverse lookups
"""

from ..engine_core.board import Board, Position


class TestPosition:
    """Tests for tile coordinates."""

    def test_offset(self):
        assert Position(2, 3).offset(drow=-1) == Position(1, 3)
        assert Position(2, 3).offset(dcol=1) == Position(2, 4)

    def test_hashable(self):
        assert {Position(0, 0), Position(0, 0)} == {Position(0, 0)}


class TestBoard:
    """Tests for grid bookkeeping."""

    def test_new_board_is_empty(self):
        board = Board(5, 7)
        assert board.occupied() == {}
        assert all(board.is_empty(p) for p in board.row_positions(0))

    def test_place_and_occupant(self):
        board = Board(5, 7)
        assert board.place("u1", Position(4, 3))
        assert board.occupant(Position(4, 3)) == "u1"
        assert not board.is_empty(Position(4, 3))

    def test_place_on_occupied_tile_fails(self):
        board = Board(5, 7)
        board.place("u1", Position(4, 3))
        assert not board.place("u2", Position(4, 3))
        assert board.occupant(Position(4, 3)) == "u1"

    def test_out_of_bounds(self):
        board = Board(5, 7)
        assert not board.in_bounds(Position(5, 0))
        assert not board.in_bounds(Position(0, -1))
        assert not board.place("u1", Position(-1, 0))
        assert board.occupant(Position(9, 9)) is None
        assert not board.is_empty(Position(9, 9))

    def test_move(self):
        board = Board(5, 7)
        board.place("u1", Position(4, 3))
        assert board.move(Position(4, 3), Position(3, 3))
        assert board.is_empty(Position(4, 3))
        assert board.occupant(Position(3, 3)) == "u1"

    def test_move_blocked(self):
        board = Board(5, 7)
        board.place("u1", Position(4, 3))
        board.place("u2", Position(3, 3))
        assert not board.move(Position(4, 3), Position(3, 3))
        assert not board.move(Position(4, 3), Position(5, 3))
        assert not board.move(Position(2, 2), Position(1, 2))
        assert board.occupant(Position(4, 3)) == "u1"

    def test_remove(self):
        board = Board(5, 7)
        board.place("u1", Position(0, 0))
        assert board.remove(Position(0, 0))
        assert board.is_empty(Position(0, 0))
        # Clearing an empty tile is allowed
        assert board.remove(Position(0, 0))

    def test_occupied_reverse_map(self):
        board = Board(5, 7)
        board.place("a", Position(0, 1))
        board.place("b", Position(4, 6))
        assert board.occupied() == {"a": Position(0, 1), "b": Position(4, 6)}

    def test_row_positions(self):
        board = Board(5, 3)
        assert board.row_positions(4) == [Position(4, 0), Position(4, 1), Position(4, 2)]
