"""Temporarily hidden obstacles and their deferred restoration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from klotski.models.board import Board, Cell
from klotski.models.errors import IllegalMove, OutOfBounds

logger = logging.getLogger(__name__)

# Moves an obstacle stays hidden for after the remover prop is used.
HIDE_STEPS = 3

# Persisted ``steps`` value of a record that is waiting for its cell.
WAITING = -1


@dataclass(frozen=True)
class ObstacleRecord:
    """A hidden obstacle at ``(row, col)``.

    ``steps`` counts the moves left before it tries to come back;
    :data:`WAITING` means the countdown ran out while the cell was
    occupied.
    """

    row: int
    col: int
    steps: int

    @property
    def waiting(self) -> bool:
        return self.steps == WAITING

    def to_list(self) -> list[int]:
        return [self.row, self.col, self.steps]


def hide_obstacle(
    board: Board, row: int, col: int, steps: int = HIDE_STEPS
) -> tuple[Board, ObstacleRecord]:
    """Suppress the obstacle at ``(row, col)``; returns the new board and its record.

    Raises :class:`IllegalMove` if the cell is not an obstacle.
    """
    if steps < 1:
        raise ValueError("steps must be at least 1")
    if board.cell_at(row, col) != Cell.OBSTACLE:
        raise IllegalMove(f"({row}, {col}) is not an obstacle.")
    new_board = board.copy()
    new_board.cells[row][col] = Cell.HIDDEN_OBSTACLE
    logger.debug("Obstacle at (%d, %d) hidden for %d moves", row, col, steps)
    return new_board, ObstacleRecord(row, col, steps)


def _cell_is_free(board: Board, row: int, col: int) -> bool:
    return board.cells[row][col] in (Cell.EMPTY, Cell.HIDDEN_OBSTACLE)


def tick_obstacles(
    board: Board, records: list[ObstacleRecord]
) -> list[ObstacleRecord]:
    """Advance every record by one successful move.

    Restored obstacles are written straight into *board*; the records
    still open afterwards are returned.
    """
    remaining: list[ObstacleRecord] = []
    for record in records:
        if not board.in_bounds(record.row, record.col):
            raise OutOfBounds(record.row, record.col, board.height, board.width)
        steps = record.steps if record.waiting else record.steps - 1
        if steps > 0:
            remaining.append(ObstacleRecord(record.row, record.col, steps))
            continue
        if _cell_is_free(board, record.row, record.col):
            board.cells[record.row][record.col] = Cell.OBSTACLE
            logger.debug("Obstacle restored at (%d, %d)", record.row, record.col)
        else:
            if not record.waiting:
                logger.debug(
                    "Obstacle at (%d, %d) waiting for its cell to clear",
                    record.row, record.col,
                )
            remaining.append(ObstacleRecord(record.row, record.col, WAITING))
    return remaining
