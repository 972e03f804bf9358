"""Movement rules: legality, board mutation and the win test."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from klotski.models.board import (
    PIECE_DIMENSIONS,
    Board,
    Cell,
    Direction,
    piece_dimensions,
)
from klotski.models.errors import IllegalMove, OutOfBounds
from klotski.models.terrain import NO_TERRAIN, Terrain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Move:
    """Slide the piece whose origin is ``(row, col)`` one cell."""

    row: int
    col: int
    direction: Direction

    def __str__(self) -> str:
        return f"Move piece at [{self.row},{self.col}] {self.direction.value}"


# -- legality -----------------------------------------------------------------


def leading_edge(
    row: int, col: int, width: int, height: int, direction: Direction
) -> Iterator[tuple[int, int]]:
    """Cells a piece newly covers when it slides one step."""
    if direction is Direction.UP:
        for c in range(col, col + width):
            yield row - 1, c
    elif direction is Direction.DOWN:
        for c in range(col, col + width):
            yield row + height, c
    elif direction is Direction.LEFT:
        for r in range(row, row + height):
            yield r, col - 1
    else:
        for r in range(row, row + height):
            yield r, col + width


def can_move(
    board: Board, row: int, col: int, kind: Cell, direction: Direction
) -> bool:
    """Return True if the *kind* piece at origin ``(row, col)`` can slide.

    Only the leading strip is inspected; cells the piece keeps covering
    are not re-checked. Units may step onto camps. Hidden obstacles stay
    impassable.

    Raises :class:`OutOfBounds` if the origin lies outside the board.
    """
    if not board.in_bounds(row, col):
        raise OutOfBounds(row, col, board.height, board.width)
    if kind not in PIECE_DIMENSIONS:
        return False
    width, height = PIECE_DIMENSIONS[kind]

    # The footprint must really hold this piece.
    if row + height > board.height or col + width > board.width:
        return False
    cells = board.cells
    for r in range(row, row + height):
        for c in range(col, col + width):
            if cells[r][c] != kind:
                return False

    for r, c in leading_edge(row, col, width, height, direction):
        if not (0 <= r < board.height and 0 <= c < board.width):
            return False
        target = cells[r][c]
        if target == Cell.EMPTY:
            continue
        if target == Cell.CAMP and kind == Cell.UNIT:
            continue
        return False
    return True


# -- mutation -----------------------------------------------------------------


def apply_move(
    board: Board,
    row: int,
    col: int,
    kind: Cell,
    direction: Direction,
    terrain: Terrain = NO_TERRAIN,
) -> tuple[Board, list[tuple[int, int]]]:
    """Slide a piece one cell and return ``(new_board, vacated_camps)``.

    *board* is left untouched. Vacated cells that are camps in *terrain*
    go back to ``CAMP`` instead of ``EMPTY``.

    Raises :class:`IllegalMove` if :func:`can_move` rejects the move.
    """
    if not can_move(board, row, col, kind, direction):
        raise IllegalMove(
            f"{Cell(kind).name} at ({row}, {col}) cannot move {direction.value}."
        )
    new_board = board.copy()
    vacated = _shift(new_board.cells, row, col, kind, direction, terrain)
    logger.debug(
        "Moved %s at (%d, %d) %s", Cell(kind).name, row, col, direction.value
    )
    return new_board, vacated


def _shift(
    cells: list[list[Cell]],
    row: int,
    col: int,
    kind: Cell,
    direction: Direction,
    terrain: Terrain,
) -> list[tuple[int, int]]:
    """Rewrite *cells* in place for an already validated move."""
    width, height = piece_dimensions(kind)
    dr, dc = direction.delta
    old = [(r, c) for r in range(row, row + height) for c in range(col, col + width)]
    camps = [pos for pos in old if terrain.is_camp(*pos)]

    for r, c in old:
        cells[r][c] = Cell.EMPTY
    new = {(r + dr, c + dc) for r, c in old}
    for r, c in new:
        cells[r][c] = kind

    vacated = [pos for pos in camps if pos not in new]
    for r, c in vacated:
        cells[r][c] = Cell.CAMP
    return vacated


def successors(
    board: Board, terrain: Terrain = NO_TERRAIN
) -> Iterator[tuple[Move, Board]]:
    """Yield every legal move and the board it leads to.

    Each piece is tried once per direction, units included one by one.
    """
    for piece in board.pieces():
        for direction in Direction:
            if can_move(board, piece.row, piece.col, piece.kind, direction):
                new_board = board.copy()
                _shift(
                    new_board.cells, piece.row, piece.col, piece.kind,
                    direction, terrain,
                )
                yield Move(piece.row, piece.col, direction), new_board


def legal_moves(board: Board) -> list[Move]:
    """All moves available on *board*."""
    return [
        Move(p.row, p.col, d)
        for p in board.pieces()
        for d in Direction
        if can_move(board, p.row, p.col, p.kind, d)
    ]


# -- goal ---------------------------------------------------------------------


def goal_origin(board: Board) -> tuple[int, int]:
    """Top-left cell of the 2×2 goal rectangle."""
    return board.height - 2, (board.width - 2) // 2


def check_win(board: Board) -> bool:
    """True iff the target piece fills the goal rectangle."""
    if board.height < 2 or board.width < 2:
        return False
    gr, gc = goal_origin(board)
    cells = board.cells
    return (
        cells[gr][gc] == Cell.TARGET
        and cells[gr][gc + 1] == Cell.TARGET
        and cells[gr + 1][gc] == Cell.TARGET
        and cells[gr + 1][gc + 1] == Cell.TARGET
    )
