"""Core gameplay logic — processes moves, props and solver requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from klotski.engine.gamerules.obstacles import (
    ObstacleRecord,
    hide_obstacle,
    tick_obstacles,
)
from klotski.engine.gamerules.rules import Move, apply_move
from klotski.engine.gamesolver.solver import Solver
from klotski.engine.gamestate import GameState, PropInventory, PropType
from klotski.models.board import Board, Direction
from klotski.models.errors import IllegalMove, NoHistory, OutOfBounds
from klotski.models.levels import LEVELS, get_level
from klotski.models.savegame import SaveRecord
from klotski.models.terrain import Terrain

logger = logging.getLogger(__name__)

HINT_MOVES = 3


@dataclass(frozen=True)
class ReplayOutcome:
    """Result of :meth:`GamePlay.replay`.

    ``completed`` is True when every move (including any re-planned
    ones) was applied; ``resolved`` tells whether a re-plan happened.
    """

    completed: bool
    applied: int
    resolved: bool


class GamePlay:
    """Orchestrates a single game session."""

    def __init__(self, level_index: int = 0, solver: Solver | None = None) -> None:
        level = get_level(level_index)
        self.level_index: int | None = LEVELS.index(level)
        self.solver = solver or Solver()
        board = level.board()
        self._start = (board.copy(), (), PropInventory(level.props))
        self.state = GameState(
            board, level.terrain(), props=PropInventory(level.props)
        )

    @classmethod
    def from_board(
        cls,
        board: Board,
        terrain: Terrain | None = None,
        solver: Solver | None = None,
    ) -> GamePlay:
        """Create a session from an arbitrary board (no props).

        *terrain* defaults to the camps visible on *board*.
        """
        board.validate()
        if terrain is None:
            terrain = Terrain.from_board(board)
        terrain.check(board)
        obj = object.__new__(cls)
        obj.level_index = None
        obj.solver = solver or Solver()
        obj._start = (board.copy(), (), PropInventory())
        obj.state = GameState(board.copy(), terrain)
        return obj

    @classmethod
    def from_save(cls, record: SaveRecord, solver: Solver | None = None) -> GamePlay:
        """Rebuild a session from a validated :class:`SaveRecord`.

        The loaded position becomes the start of the undo history.
        """
        board = Board.from_rows(record.board)
        terrain = Terrain.from_pairs(record.camps)
        obstacles = tuple(ObstacleRecord(*entry) for entry in record.removed_obstacles)
        props = PropInventory(record.props)
        obj = object.__new__(cls)
        obj.level_index = record.level if 0 <= record.level < len(LEVELS) else None
        obj.solver = solver or Solver()
        obj._start = (board.copy(), obstacles, props.copy())
        obj.state = GameState(
            board, terrain, obstacles, props, moves=record.move_count
        )
        return obj

    # -- movement -------------------------------------------------------------

    def move(self, row: int, col: int, direction: Direction | str) -> bool:
        """Slide the piece covering ``(row, col)`` one cell in *direction*.

        Any cell of the piece may be given. Returns True if the move was
        valid; on False nothing changed.
        """
        try:
            direction = Direction(direction)
        except ValueError:
            return False
        board = self.state.board
        if not board.in_bounds(row, col):
            return False
        piece = board.piece_at(row, col)
        if piece is None:
            return False
        try:
            new_board, _ = apply_move(
                board, piece.row, piece.col, piece.kind, direction,
                self.state.terrain,
            )
        except IllegalMove:
            return False
        obstacles = tick_obstacles(new_board, self.state.obstacles)
        self.state.commit(new_board, obstacles)
        if self.is_won:
            logger.info("Puzzle solved in %d moves", self.moves)
        return True

    def undo(self) -> bool:
        try:
            self.state.undo()
        except NoHistory:
            return False
        return True

    def restart(self) -> None:
        """Go back to the position the session started from."""
        board, obstacles, props = self._start
        self.state.reset(board.copy(), obstacles)
        self.state.props = props.copy()

    # -- props ----------------------------------------------------------------

    def use_obstacle_remover(self, row: int, col: int) -> bool:
        """Hide the obstacle at ``(row, col)`` for a few moves."""
        if not self.state.props.available(PropType.OBSTACLE_REMOVER):
            return False
        try:
            board, record = hide_obstacle(self.state.board, row, col)
        except (IllegalMove, OutOfBounds):
            return False
        self.state.props.use(PropType.OBSTACLE_REMOVER)
        self.state.amend(board, [*self.state.obstacles, record])
        return True

    def use_hint(self, count: int = HINT_MOVES) -> list[Move]:
        """Next moves towards the goal; a hint is spent only if some are found."""
        if not self.state.props.available(PropType.HINT):
            return []
        moves = self.solver.hint(self.state.board, self.state.terrain, count)
        if moves:
            self.state.props.use(PropType.HINT)
        return moves

    def use_time_bonus(self) -> bool:
        if not self.state.props.available(PropType.TIME_BONUS):
            return False
        self.state.props.use(PropType.TIME_BONUS)
        return True

    # -- solver ---------------------------------------------------------------

    def solve(self) -> list[Move]:
        """Full solution from the current position; raises ``Unsolvable``."""
        return self.solver.solve(self.state.board, self.state.terrain)

    def replay(self, moves: Iterable[Move]) -> ReplayOutcome:
        """Apply *moves* in order, stopping once the puzzle is won.

        If a move no longer applies, the solver plans again from the
        live board once and the new plan is followed instead.
        """
        pending = list(moves)
        applied = 0
        resolved = False
        while pending:
            if self.is_won:
                break
            move = pending.pop(0)
            if self.move(move.row, move.col, move.direction):
                applied += 1
                continue
            if resolved:
                logger.info("Re-planned move %s failed; giving up", move)
                return ReplayOutcome(False, applied, resolved)
            logger.info("Move %s no longer applies; re-planning", move)
            resolved = True
            if not self.solver.find_solution(self.state.board, self.state.terrain):
                return ReplayOutcome(False, applied, resolved)
            pending = self.solver.get_solution_moves(self.solver.solution_length)
        return ReplayOutcome(True, applied, resolved)

    # -- queries --------------------------------------------------------------

    @property
    def board(self) -> Board:
        return self.state.board

    @property
    def moves(self) -> int:
        return self.state.total_moves

    @property
    def is_won(self) -> bool:
        return self.state.is_solved

    # -- persistence ----------------------------------------------------------

    def to_save(self) -> SaveRecord:
        return SaveRecord(
            board=self.state.board.to_rows(),
            move_count=self.state.total_moves,
            removed_obstacles=[r.to_list() for r in self.state.obstacles],
            camps=self.state.terrain.to_pairs(),
            level=self.level_index if self.level_index is not None else -1,
            props=self.state.props.to_dict(),
        )
