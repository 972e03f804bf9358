"""Tracks the mutable state of a game in progress."""

from __future__ import annotations

from typing import NamedTuple, Sequence

from klotski.engine.gamerules.obstacles import ObstacleRecord
from klotski.engine.gamerules.rules import check_win
from klotski.engine.gamestate.props import PropInventory
from klotski.models.board import Board
from klotski.models.errors import NoHistory
from klotski.models.terrain import NO_TERRAIN, Terrain


class Snapshot(NamedTuple):
    """One undo entry: the board plus the hidden-obstacle countdowns."""

    board: Board
    obstacles: tuple[ObstacleRecord, ...]


class GameState:
    """Holds the current board, move counter, undo history and props.

    ``history[0]`` is the starting position; every successful move pushes
    exactly one snapshot, so ``len(history) == moves + 1``.
    """

    def __init__(
        self,
        board: Board,
        terrain: Terrain = NO_TERRAIN,
        obstacles: Sequence[ObstacleRecord] = (),
        props: PropInventory | None = None,
        moves: int = 0,
    ) -> None:
        self.terrain = terrain
        self.props = props if props is not None else PropInventory()
        self.board = board
        self.obstacles: list[ObstacleRecord] = list(obstacles)
        self.moves: int = 0
        self.history: list[Snapshot] = []
        self.reset(board, obstacles)
        # A restored save keeps its counter but cannot undo past the load.
        self._base_moves = moves

    # -- history --------------------------------------------------------------

    def push_snapshot(self, board: Board) -> None:
        self.history.append(Snapshot(board.copy(), tuple(self.obstacles)))

    def record_move(self) -> None:
        self.moves += 1

    def commit(self, board: Board, obstacles: Sequence[ObstacleRecord]) -> None:
        """Adopt the result of a successful move."""
        self.board = board
        self.obstacles = list(obstacles)
        self.record_move()
        self.push_snapshot(board)

    def amend(self, board: Board, obstacles: Sequence[ObstacleRecord]) -> None:
        """Replace the current position without counting a move."""
        self.board = board
        self.obstacles = list(obstacles)
        self.history[-1] = Snapshot(board.copy(), tuple(self.obstacles))

    def undo(self) -> Board:
        """Step back one move and return the restored board.

        Raises :class:`NoHistory` at the initial snapshot.
        """
        if len(self.history) <= 1:
            raise NoHistory("Nothing to undo.")
        self.history.pop()
        previous = self.history[-1]
        self.board = previous.board.copy()
        self.obstacles = list(previous.obstacles)
        self.moves -= 1
        return self.board

    def reset(
        self, board: Board, obstacles: Sequence[ObstacleRecord] = ()
    ) -> None:
        """Start over from *board* with a fresh history."""
        self.board = board
        self.obstacles = list(obstacles)
        self.moves = 0
        self._base_moves = 0
        self.history = []
        self.push_snapshot(board)

    # -- queries --------------------------------------------------------------

    @property
    def total_moves(self) -> int:
        """Moves including those made before the session was restored."""
        return self._base_moves + self.moves

    @property
    def can_undo(self) -> bool:
        return len(self.history) > 1

    @property
    def is_solved(self) -> bool:
        return check_win(self.board)
