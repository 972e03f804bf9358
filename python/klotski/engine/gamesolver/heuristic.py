"""Composite heuristic used to order the A* frontier.

The score is not admissible. The weights only steer the search towards
boards where the target piece is close to the goal with free space
around it and below it, so the search returns *a* solution quickly
rather than a shortest one.

Every component reads a flat cell sequence through a :class:`Layout`, so
the same code scores ``Board.key()`` tuples and the solver's packed
states. Cells are counted with slices rather than per-cell loops.
"""

from __future__ import annotations

from typing import Sequence

from klotski.engine.gamesolver.packing import EMPTY, TARGET, Layout
from klotski.models.board import Board

MANHATTAN_WEIGHT = 5
CONFLICT_WEIGHT = 10
PATTERN_WEIGHT = 8
SPACE_WEIGHT = 15
PATH_WEIGHT = 20

# Returned for boards without a target piece; sorts after everything else.
NO_TARGET = 10**9


def manhattan(tr: int, tc: int, gr: int, gc: int) -> int:
    return abs(tr - gr) + abs(tc - gc)


def linear_conflicts(cells: Sequence[int], layout: Layout, tr: int, tc: int) -> int:
    """Occupied cells on the target's row and column, target excluded."""
    start = layout.index(tr, 0)
    row = cells[start:start + layout.width]
    start = layout.index(0, tc)
    col = cells[start:start + layout.height * layout.stride:layout.stride]
    # The target itself fills two cells of each line.
    return (len(row) - row.count(EMPTY) - 2) + (len(col) - col.count(EMPTY) - 2)


def pattern_score(layout: Layout, tr: int, tc: int, gr: int, gc: int) -> int:
    score = 0
    if tr in (0, layout.height - 2) and tc in (0, layout.width - 2):
        score += 5
    if tr == gr:
        score += 3
    if tc == gc:
        score += 3
    return score


def space_score(cells: Sequence[int], layout: Layout, tr: int, tc: int, gr: int) -> int:
    """Negative count of useful free cells (more space scores lower)."""
    score = 0
    # Rows below the target's bottom edge, down to the goal row. Padding
    # between rows is never EMPTY, so one slice covers them all.
    last = min(gr, layout.height - 1)
    if tr + 2 <= last:
        below = cells[layout.index(tr + 2, 0):layout.index(last, layout.width)]
        score += 3 * below.count(EMPTY)
    # 4×4 window around the target.
    first, end = max(tc - 1, 0), min(tc + 3, layout.width)
    for r in range(max(tr - 1, 0), min(tr + 3, layout.height)):
        start = layout.index(r, 0)
        score += 2 * cells[start + first:start + end].count(EMPTY)
    return -score


def _clear(line: Sequence[int]) -> bool:
    return line.count(EMPTY) + line.count(TARGET) == len(line)


def path_score(
    cells: Sequence[int], layout: Layout, tr: int, tc: int, gr: int, gc: int
) -> int:
    """-10 per axis whose straight corridor to the goal is free."""
    score = 0
    top, bottom = min(tr, gr), max(tr, gr)
    column = cells[layout.index(top, gc):layout.index(bottom, gc) + 1:layout.stride]
    if _clear(column):
        score -= 10
    left, right = min(tc, gc), max(tc, gc)
    if _clear(cells[layout.index(gr, left):layout.index(gr, right) + 1]):
        score -= 10
    return score


def score(cells: Sequence[int], layout: Layout, tr: int, tc: int) -> int:
    """Score the state whose target origin is ``(tr, tc)``."""
    gr, gc = layout.goal
    return (
        MANHATTAN_WEIGHT * manhattan(tr, tc, gr, gc)
        + CONFLICT_WEIGHT * linear_conflicts(cells, layout, tr, tc)
        + PATTERN_WEIGHT * pattern_score(layout, tr, tc, gr, gc)
        + SPACE_WEIGHT * space_score(cells, layout, tr, tc, gr)
        + PATH_WEIGHT * path_score(cells, layout, tr, tc, gr, gc)
    )


def heuristic(board: Board) -> int:
    """Score *board*; lower is closer to solved."""
    target = board.find_target()
    if target is None:
        return NO_TARGET
    return score(board.key(), Layout.of(board), *target)
