"""Klotski solver — A* over board states.

The frontier is ordered by ``f = g + h`` with ties broken on ``h``, then
``g``, then insertion order, so a given board always yields the same
solution. The search is bounded by an explored-state budget that grows
with the board area and by a wall-clock budget; it can also be cancelled
cooperatively from another thread.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from klotski.engine.gamerules.rules import Move, can_move, goal_origin, leading_edge
from klotski.engine.gamesolver.heuristic import heuristic, score
from klotski.engine.gamesolver.packing import PackedGrid, Pieces
from klotski.models.board import PIECE_DIMENSIONS, Board, Cell, Direction
from klotski.models.errors import Unsolvable
from klotski.models.terrain import Terrain

logger = logging.getLogger(__name__)

MIN_EMPTY_CELLS = 4

_IMMOVABLE = (Cell.OBSTACLE, Cell.HIDDEN_OBSTACLE, Cell.CAMP)


@dataclass(frozen=True)
class SolverLimits:
    """Search budgets.

    The explored-state budget is ``area * states_per_cell`` capped at
    ``max_states_cap``; ``time_limit`` is in seconds.
    """

    max_states_cap: int = 1_000_000
    states_per_cell: int = 50_000
    time_limit: float = 30.0
    report_interval: int = 100

    def max_states(self, board: Board) -> int:
        return min(self.max_states_cap, board.width * board.height * self.states_per_cell)


@dataclass(frozen=True)
class SearchProgress:
    explored: int
    frontier: int
    best_h: int
    elapsed: float


@dataclass(frozen=True)
class SearchResult:
    """Outcome of one :meth:`Solver.find_solution` call.

    ``reason`` is one of ``solved``, ``exhausted``, ``state_limit``,
    ``time_limit``, ``cancelled`` or ``no_target``. When the search
    fails, ``best_board`` is the lowest-``h`` board it reached.
    """

    solved: bool
    reason: str
    moves: tuple[Move, ...]
    explored: int
    elapsed: float
    best_h: int
    best_board: Optional[Board]


class _Node:
    __slots__ = ("cells", "pieces", "target", "parent", "g", "h", "step")

    def __init__(
        self,
        cells: bytes,
        pieces: Pieces,
        target: int,
        parent: Optional[_Node],
        g: int,
        h: int,
        step: Optional[tuple[int, Direction]],
    ) -> None:
        self.cells = cells
        self.pieces = pieces
        self.target = target
        self.parent = parent
        self.g = g
        self.h = h
        self.step = step

    def path(self) -> list[tuple[int, Direction]]:
        steps: list[tuple[int, Direction]] = []
        node: Optional[_Node] = self
        while node is not None and node.step is not None:
            steps.append(node.step)
            node = node.parent
        steps.reverse()
        return steps


class Solver:
    """Finds a move sequence that brings the target piece to the goal.

    One search may run per instance at a time; a concurrent
    :meth:`find_solution` call is rejected and returns False.
    """

    def __init__(
        self,
        limits: SolverLimits | None = None,
        progress: Callable[[SearchProgress], None] | None = None,
        interrupt_check: Callable[[], bool] | None = None,
    ) -> None:
        self.limits = limits or SolverLimits()
        self.progress = progress
        self.interrupt_check = interrupt_check
        self.last_result: SearchResult | None = None
        self._solution: list[Move] = []
        self._lock = threading.Lock()
        self._cancel = threading.Event()

    # -- public API -----------------------------------------------------------

    @property
    def searching(self) -> bool:
        return self._lock.locked()

    @property
    def solution_length(self) -> int:
        return len(self._solution)

    def cancel(self) -> None:
        """Stop the running search at its next iteration.

        A request made while no search is running stops the next one
        before it explores anything.
        """
        self._cancel.set()

    def find_solution(self, board: Board, terrain: Terrain | None = None) -> bool:
        """Search from *board*; True only if a goal state was reached.

        *terrain* defaults to the camps visible on *board*. The board is
        copied on entry and never modified.
        """
        result = self._guarded_search(board, terrain)
        return result is not None and result.solved

    def get_solution_moves(self, count: int) -> list[Move]:
        """First *count* moves (or fewer) of the last solution found."""
        return self._solution[: max(count, 0)]

    def solve(self, board: Board, terrain: Terrain | None = None) -> list[Move]:
        """Return a full solution, or raise :class:`Unsolvable`."""
        result = self._guarded_search(board, terrain)
        if result is None:
            raise Unsolvable("No solution found (search already running).")
        if not result.solved:
            raise Unsolvable(f"No solution found ({result.reason}).")
        return list(result.moves)

    def hint(
        self, board: Board, terrain: Terrain | None = None, count: int = 3
    ) -> list[Move]:
        """Next *count* moves towards the goal, or ``[]`` if none are known."""
        if not self.find_solution(board, terrain):
            return []
        return self.get_solution_moves(count)

    # -- search ---------------------------------------------------------------

    def _guarded_search(
        self, board: Board, terrain: Terrain | None
    ) -> SearchResult | None:
        """Run one search under the lock; None if another one holds it."""
        if not self._lock.acquire(blocking=False):
            logger.warning("Search already running; request ignored")
            return None
        try:
            self._solution = []
            start = board.copy()
            if terrain is None:
                terrain = Terrain.from_board(start)
            result = self._search(start, terrain)
            self.last_result = result
            if result.solved:
                self._solution = list(result.moves)
            return result
        finally:
            self._cancel.clear()
            self._lock.release()

    def _stop_requested(self) -> bool:
        if self._cancel.is_set():
            return True
        return self.interrupt_check is not None and self.interrupt_check()

    def _search(self, board: Board, terrain: Terrain) -> SearchResult:
        started = time.monotonic()

        target = board.find_target()
        if target is None:
            logger.info("No target piece on the board; nothing to search")
            return SearchResult(False, "no_target", (), 0, 0.0, heuristic(board), None)

        max_states = self.limits.max_states(board)
        deadline = started + self.limits.time_limit
        report_every = max(self.limits.report_interval, 1)
        logger.info(
            "Starting A* search on %d×%d board (budget %d states, %.1fs)",
            board.height, board.width, max_states, self.limits.time_limit,
        )

        grid = PackedGrid(board, terrain)
        layout = grid.layout
        cells, pieces = grid.pack(board)
        root = _Node(
            cells, pieces, layout.index(*target), None, 0,
            score(cells, layout, *target), None,
        )
        seq = itertools.count()
        frontier: list[tuple[int, int, int, int, _Node]] = [
            (root.g + root.h, root.h, root.g, next(seq), root)
        ]
        best_g: dict[bytes, int] = {cells: 0}
        closed: set[bytes] = set()
        best = root
        explored = 0
        reason = "exhausted"

        while frontier:
            if self._stop_requested():
                reason = "cancelled"
                break
            if explored >= max_states:
                reason = "state_limit"
                break
            if time.monotonic() > deadline:
                reason = "time_limit"
                break

            _, h, g, _, node = heapq.heappop(frontier)
            cells = node.cells
            if cells in closed or g > best_g.get(cells, g):
                continue
            explored += 1

            if h < best.h:
                best = node

            if grid.solved(cells):
                moves = [grid.move(origin, d) for origin, d in node.path()]
                elapsed = time.monotonic() - started
                logger.info(
                    "Goal reached: %d moves after %d states (%.2fs)",
                    len(moves), explored, elapsed,
                )
                return SearchResult(
                    True, "solved", tuple(moves), explored, elapsed,
                    h, grid.unpack(cells),
                )
            closed.add(cells)

            child_g = g + 1
            for origin, direction, moved, child_cells, child_pieces in grid.expand(
                cells, node.pieces
            ):
                if child_cells in closed:
                    continue
                if child_g >= best_g.get(child_cells, child_g + 1):
                    continue
                best_g[child_cells] = child_g
                child_target = moved if origin == node.target else node.target
                child_h = score(child_cells, layout, *layout.position(child_target))
                child = _Node(
                    child_cells, child_pieces, child_target, node,
                    child_g, child_h, (origin, direction),
                )
                heapq.heappush(
                    frontier, (child_g + child_h, child_h, child_g, next(seq), child)
                )

            if self.progress is not None and explored % report_every == 0:
                self.progress(
                    SearchProgress(
                        explored, len(frontier), best.h, time.monotonic() - started
                    )
                )

        elapsed = time.monotonic() - started
        best_board = grid.unpack(best.cells)
        logger.info(
            "Search stopped (%s) after %d states (%.2fs); best h=%d",
            reason, explored, elapsed, best.h,
        )
        logger.debug("Best board reached:\n%s", best_board)
        return SearchResult(False, reason, (), explored, elapsed, best.h, best_board)


# -- solvability pre-check ------------------------------------------------------


def _corridor_blocked(
    board: Board, rows: range, cols: range
) -> bool:
    return any(
        board.cells[r][c] == Cell.OBSTACLE
        for r in rows
        for c in cols
        if board.in_bounds(r, c)
    )


def _side_open(board: Board, tr: int, tc: int, direction: Direction) -> bool:
    """Whether the target could ever slide this way.

    A side is open if the move is legal now, or if every blocking cell
    is a piece that might get out of the way.
    """
    if can_move(board, tr, tc, Cell.TARGET, direction):
        return True
    width, height = PIECE_DIMENSIONS[Cell.TARGET]
    for r, c in leading_edge(tr, tc, width, height, direction):
        if not board.in_bounds(r, c) or board.cells[r][c] in _IMMOVABLE:
            return False
    return True


def is_solvable(board: Board) -> bool:
    """Cheap screening before a search. False means certainly hopeless.

    Rejects boards without a target, with a target walled in on all four
    sides by edges or terrain, with fewer than four empty cells, or with
    an obstacle on both L-shaped routes from the target to the goal.
    """
    target = board.find_target()
    if target is None:
        logger.info("Not solvable: no target piece")
        return False
    tr, tc = target

    if not any(_side_open(board, tr, tc, d) for d in Direction):
        logger.info("Not solvable: target piece cannot move")
        return False

    gr, gc = goal_origin(board)
    rows_between = range(min(tr, gr), max(tr, gr) + 2)
    cols_between = range(min(tc, gc), max(tc, gc) + 2)
    # Slide vertically in the target's columns, then along the goal rows.
    vertical_first = _corridor_blocked(
        board, rows_between, range(tc, tc + 2)
    ) or _corridor_blocked(board, range(gr, gr + 2), cols_between)
    # Slide horizontally in the target's rows, then down the goal columns.
    horizontal_first = _corridor_blocked(
        board, range(tr, tr + 2), cols_between
    ) or _corridor_blocked(board, rows_between, range(gc, gc + 2))
    if vertical_first and horizontal_first:
        logger.info("Not solvable: obstacles block every route to the goal")
        return False

    if board.empty_count() < MIN_EMPTY_CELLS:
        logger.info("Not solvable: fewer than %d empty cells", MIN_EMPTY_CELLS)
        return False
    return True
