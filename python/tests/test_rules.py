"""Move engine: legality, camp handling and the win test."""

from __future__ import annotations

import pytest

from klotski.engine.gamerules import (
    Move,
    apply_move,
    can_move,
    check_win,
    goal_origin,
    legal_moves,
    successors,
)
from klotski.models.board import Board, Cell, Direction
from klotski.models.errors import IllegalMove, OutOfBounds
from klotski.models.levels import get_level
from klotski.models.terrain import Terrain

UP, DOWN, LEFT, RIGHT = Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT


# -- can_move -----------------------------------------------------------------


def test_only_the_leading_strip_is_checked() -> None:
    # A post sliding down keeps covering its own lower cell.
    board = Board.from_rows([[3], [3], [0]])
    assert can_move(board, 0, 0, Cell.POST, DOWN)


def test_piece_cannot_leave_the_grid() -> None:
    board = Board.from_rows([[1, 1, 0], [1, 1, 0]])
    assert not can_move(board, 0, 0, Cell.TARGET, UP)
    assert not can_move(board, 0, 0, Cell.TARGET, LEFT)
    assert can_move(board, 0, 0, Cell.TARGET, RIGHT)


def test_origin_outside_grid_raises() -> None:
    board = Board.from_rows([[4, 0]])
    with pytest.raises(OutOfBounds):
        can_move(board, 1, 0, Cell.UNIT, DOWN)


def test_footprint_must_hold_the_piece() -> None:
    board = Board.from_rows([[4, 0], [0, 0]])
    assert not can_move(board, 0, 0, Cell.POST, RIGHT)
    assert not can_move(board, 0, 1, Cell.UNIT, LEFT)
    assert not can_move(board, 0, 0, Cell.OBSTACLE, RIGHT)


@pytest.mark.parametrize(
    "blocker, kind, allowed",
    [
        (Cell.EMPTY, Cell.UNIT, True),
        (Cell.CAMP, Cell.UNIT, True),
        (Cell.CAMP, Cell.POST, False),
        (Cell.OBSTACLE, Cell.UNIT, False),
        (Cell.HIDDEN_OBSTACLE, Cell.UNIT, False),
        (Cell.UNIT, Cell.POST, False),
    ],
    ids=["empty", "unit-to-camp", "post-to-camp", "obstacle", "hidden-obstacle", "piece"],
)
def test_leading_cell_kinds(blocker: Cell, kind: Cell, allowed: bool) -> None:
    rows = [[int(kind), int(blocker)]]
    if kind is Cell.POST:
        rows.append([int(kind), 0])
    assert can_move(Board.from_rows(rows), 0, 0, kind, RIGHT) is allowed


def test_target_cannot_enter_camp() -> None:
    board = Board.from_rows([[1, 1, 10], [1, 1, 0]])
    assert not can_move(board, 0, 0, Cell.TARGET, RIGHT)


# -- apply_move ---------------------------------------------------------------


def test_apply_move_returns_new_board() -> None:
    board = Board.from_rows([[2, 2, 0]])
    before = board.copy()
    moved, vacated = apply_move(board, 0, 0, Cell.BAR, RIGHT)
    assert moved.to_rows() == [[0, 2, 2]]
    assert vacated == []
    assert board == before


def test_illegal_move_leaves_board_untouched() -> None:
    board = Board.from_rows([[2, 2, 9]])
    before = board.copy()
    with pytest.raises(IllegalMove):
        apply_move(board, 0, 0, Cell.BAR, RIGHT)
    assert board == before


def test_unit_leaving_camp_restores_it() -> None:
    board = Board.from_rows([[4, 10, 0]])
    terrain = Terrain.from_board(board)
    board, vacated = apply_move(board, 0, 0, Cell.UNIT, RIGHT, terrain)
    assert board.to_rows() == [[0, 4, 0]]
    assert vacated == []
    board, vacated = apply_move(board, 0, 1, Cell.UNIT, RIGHT, terrain)
    assert board.to_rows() == [[0, 10, 4]]
    assert vacated == [(0, 1)]


def test_camp_under_unit_at_start_comes_back() -> None:
    # The camp is hidden under the unit; only the terrain layer knows it.
    board = Board.from_rows([[4], [0]])
    terrain = Terrain.from_pairs([[0, 0]])
    moved, vacated = apply_move(board, 0, 0, Cell.UNIT, DOWN, terrain)
    assert moved.to_rows() == [[10], [4]]
    assert vacated == [(0, 0)]


def test_without_terrain_camp_becomes_empty() -> None:
    board = Board.from_rows([[4], [0]])
    moved, _ = apply_move(board, 0, 0, Cell.UNIT, DOWN)
    assert moved.to_rows() == [[0], [4]]


def test_triple_slides_down() -> None:
    board = Board.from_rows([[5, 5, 5], [0, 0, 0]])
    moved, _ = apply_move(board, 0, 0, Cell.TRIPLE, DOWN)
    assert moved.to_rows() == [[0, 0, 0], [5, 5, 5]]


# -- enumeration --------------------------------------------------------------


def test_legal_moves() -> None:
    board = Board.from_rows([[4, 0], [9, 3], [0, 3]])
    assert set(legal_moves(board)) == {
        Move(0, 0, RIGHT),
        Move(1, 1, UP),
    }


def test_successors_match_apply_move() -> None:
    board = Board.from_rows([[4, 10], [0, 0]])
    terrain = Terrain.from_board(board)
    for move, new_board in successors(board, terrain):
        kind = board.cell_at(move.row, move.col)
        expected, _ = apply_move(board, move.row, move.col, kind, move.direction, terrain)
        assert new_board == expected
    assert {m for m, _ in successors(board, terrain)} == set(legal_moves(board))


# -- win ----------------------------------------------------------------------


@pytest.mark.parametrize(
    "height, width, origin",
    [(5, 4, (3, 1)), (6, 6, (4, 2)), (6, 4, (4, 1)), (2, 2, (0, 0)), (4, 5, (2, 1))],
)
def test_goal_origin(height: int, width: int, origin: tuple[int, int]) -> None:
    board = Board.from_rows([[0] * width for _ in range(height)])
    assert goal_origin(board) == origin


def test_check_win() -> None:
    won = Board.from_rows(
        [[0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 1, 1, 0], [0, 1, 1, 0]]
    )
    off = Board.from_rows(
        [[0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [1, 1, 0, 0], [1, 1, 0, 0]]
    )
    assert check_win(won)
    assert not check_win(off)
    assert not check_win(Board.from_rows([[1]]))


@pytest.mark.parametrize("level", [0, 1, 2, 3])
def test_inverse_move_restores_board(level: int) -> None:
    board = get_level(level).board()
    terrain = get_level(level).terrain()
    for move in legal_moves(board):
        kind = board.cell_at(move.row, move.col)
        moved, _ = apply_move(board, move.row, move.col, kind, move.direction, terrain)
        dr, dc = move.direction.delta
        back, _ = apply_move(
            moved, move.row + dr, move.col + dc, kind, move.direction.opposite, terrain
        )
        assert back == board, str(move)
