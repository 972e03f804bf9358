"""Solver test suite — fixture boards and search behaviour.

Boards are JSON fixtures under ``<project_root>/fixtures/``.  Every test
is hard-killed by ``pytest-timeout`` (configured in ``pyproject.toml``).
When the solver returns a plan, it is replayed through the real game
engine to verify it.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

import pytest

from klotski.engine.gameplay.game import GamePlay
from klotski.engine.gamerules.rules import Move, check_win
from klotski.engine.gamesolver import (
    BackgroundSolve,
    SearchProgress,
    Solver,
    SolverLimits,
    is_solvable,
)
from klotski.models.board import Board, Cell, Direction
from klotski.models.errors import Unsolvable
from klotski.models.levels import LEVELS
from klotski.models.terrain import Terrain

FIXTURES_DIR = Path(__file__).resolve().parent.parent.parent / "fixtures"


# -- fixture loaders ----------------------------------------------------------


def _load(name: str) -> list[dict]:
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


def _ids(board_data: dict) -> str:
    return board_data["id"]


# Loaded once at import time; each entry becomes one parametrised case.
_BOARDS = _load("boards.json")
_SOLVABLE = [b for b in _BOARDS if b["solvable"]]
_UNSOLVABLE = [b for b in _BOARDS if not b["solvable"]]
_BY_ID = {b["id"]: b for b in _BOARDS}


# -- helpers ------------------------------------------------------------------


def _board(board_id: str) -> Board:
    return Board.from_rows(_BY_ID[board_id]["rows"])


def _assert_solve(data: dict) -> None:
    """Solve the board and verify the returned moves reach the goal state."""
    board = Board.from_rows(data["rows"])
    before = board.copy()

    solver = Solver()
    assert solver.find_solution(board), f"No solution found ({data['id']})"
    assert board == before, "The solver must not touch the caller's board"

    moves = solver.get_solution_moves(solver.solution_length)

    # ---- move-list sanity ---------------------------------------------------
    assert len(moves) > 0, f"Solvable board returned 0 moves ({data['id']})"
    assert all(isinstance(m, Move) for m in moves)

    # ---- apply moves via the real game engine and check win -----------------
    game = GamePlay.from_board(board, Terrain.from_board(board))
    for i, move in enumerate(moves):
        ok = game.move(move.row, move.col, move.direction)
        assert ok, f"Move {i} ({move}) was invalid ({data['id']})"

    assert game.is_won, f"Board not solved after {len(moves)} moves ({data['id']})"
    assert check_win(game.board)


# -- fixture boards -----------------------------------------------------------


@pytest.mark.timeout(60)
@pytest.mark.parametrize("board_data", _SOLVABLE, ids=_ids)
def test_solve(board_data: dict) -> None:
    _assert_solve(board_data)


@pytest.mark.parametrize("board_data", _SOLVABLE, ids=_ids)
def test_solvable_boards_pass_screening(board_data: dict) -> None:
    assert is_solvable(Board.from_rows(board_data["rows"]))


@pytest.mark.parametrize("board_data", _UNSOLVABLE, ids=_ids)
def test_unsolvable_boards_fail_screening(board_data: dict) -> None:
    assert not is_solvable(Board.from_rows(board_data["rows"]))


# -- built-in levels ---------------------------------------------------------


@pytest.mark.timeout(90)
@pytest.mark.parametrize("index", [0, 1], ids=["easy", "hard"])
def test_levels_solve_within_default_limits(index: int) -> None:
    level = LEVELS[index]
    solver = Solver()
    assert solver.find_solution(level.board(), level.terrain()), solver.last_result
    game = GamePlay(index)
    outcome = game.replay(solver.get_solution_moves(solver.solution_length))
    assert outcome.completed
    assert not outcome.resolved
    assert game.is_won


# -- screening ----------------------------------------------------------------


def test_no_target_is_rejected_without_raising() -> None:
    board = Board.from_rows([[0, 4, 0], [4, 0, 0], [0, 0, 3], [0, 0, 3]])
    assert not is_solvable(board)

    solver = Solver()
    assert solver.find_solution(board) is False
    assert solver.last_result.reason == "no_target"
    assert solver.get_solution_moves(3) == []


def test_too_few_empty_cells_is_rejected() -> None:
    # The classic opening has only two free cells.
    board = Board.from_rows(
        [
            [3, 1, 1, 3],
            [3, 1, 1, 3],
            [4, 2, 2, 4],
            [3, 4, 4, 3],
            [3, 0, 0, 3],
        ]
    )
    assert not is_solvable(board)


def test_one_open_route_is_enough() -> None:
    # Obstacle on the straight-down route only; the sideways-first route is clear.
    board = Board.from_rows(
        [
            [1, 1, 0, 0],
            [1, 1, 0, 0],
            [9, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
        ]
    )
    assert is_solvable(board)


# -- search behaviour ---------------------------------------------------------


def test_walled_in_target_exhausts_search() -> None:
    solver = Solver()
    assert solver.find_solution(_board("walled-in-3x2")) is False
    result = solver.last_result
    assert result.reason == "exhausted"
    assert result.explored == 1
    assert result.best_board == _board("walled-in-3x2")


def test_solve_raises_when_unsolvable() -> None:
    with pytest.raises(Unsolvable):
        Solver().solve(_board("walled-in-3x2"))


def test_already_solved_board_needs_no_moves() -> None:
    board = Board.from_rows([[0, 0, 0], [1, 1, 0], [1, 1, 0]])
    solver = Solver()
    assert solver.find_solution(board)
    assert solver.solution_length == 0


def test_repeated_searches_agree() -> None:
    board = _board("units-step-onto-camps-5x4")
    solver = Solver()
    assert solver.find_solution(board)
    first = solver.get_solution_moves(solver.solution_length)
    assert solver.find_solution(board)
    second = solver.get_solution_moves(solver.solution_length)
    assert first == second


def test_get_solution_moves_truncates() -> None:
    solver = Solver()
    assert solver.find_solution(_board("units-step-onto-camps-5x4"))
    assert solver.solution_length >= 4
    assert solver.get_solution_moves(2) == solver.get_solution_moves(10)[:2]
    assert len(solver.get_solution_moves(100)) == solver.solution_length
    assert solver.get_solution_moves(0) == []


def test_units_use_camps_in_solution() -> None:
    board = _board("units-step-onto-camps-5x4")
    moves = Solver().solve(board)
    game = GamePlay.from_board(board)
    for move in moves:
        assert game.move(move.row, move.col, move.direction)
    # Camps come back once the units have left them.
    for r, c in [(2, 0), (2, 3)]:
        assert game.board.cells[r][c] in (Cell.CAMP, Cell.UNIT)


def test_state_budget_stops_search() -> None:
    solver = Solver(SolverLimits(max_states_cap=1))
    assert solver.find_solution(_board("units-step-onto-camps-5x4")) is False
    assert solver.last_result.reason == "state_limit"
    assert solver.last_result.best_board is not None


def test_state_budget_scales_with_area() -> None:
    limits = SolverLimits(max_states_cap=10**9, states_per_cell=10)
    assert limits.max_states(_board("open-4x4")) == 160
    assert SolverLimits().max_states(_board("open-4x4")) == 800_000
    assert SolverLimits().max_states(_board("posts-bar-units-5x4")) == 1_000_000


def test_interrupt_check_cancels() -> None:
    solver = Solver(interrupt_check=lambda: True)
    assert solver.find_solution(_board("open-4x4")) is False
    assert solver.last_result.reason == "cancelled"


def test_progress_is_reported() -> None:
    seen: list[SearchProgress] = []
    solver = Solver(SolverLimits(report_interval=1), progress=seen.append)
    assert solver.find_solution(_board("units-step-onto-camps-5x4"))
    assert seen
    assert [p.explored for p in seen] == sorted(p.explored for p in seen)


def test_second_search_is_rejected_while_running(caplog) -> None:
    inner: list[bool] = []
    board = _board("units-step-onto-camps-5x4")

    def reenter(progress: SearchProgress) -> None:
        if not inner:
            assert solver.searching
            inner.append(solver.find_solution(board))

    solver = Solver(SolverLimits(report_interval=1), progress=reenter)
    with caplog.at_level(logging.WARNING):
        assert solver.find_solution(board)
    assert inner == [False]
    assert "already running" in caplog.text
    assert not solver.searching


# -- background worker --------------------------------------------------------


def test_background_solve_finishes() -> None:
    job = BackgroundSolve(_board("units-step-onto-camps-5x4")).start()
    assert job.wait(30)
    assert job.done
    assert job.result is True
    assert job.solver.solution_length > 0


def test_background_solve_can_be_cancelled() -> None:
    stop = threading.Event()
    stop.set()
    job = BackgroundSolve(
        _board("open-4x4"), solver=Solver(interrupt_check=stop.is_set)
    ).start()
    assert job.wait(5)
    assert job.result is False
    assert job.solver.last_result.reason == "cancelled"


def test_background_solve_works_on_a_copy() -> None:
    board = _board("open-4x4")
    job = BackgroundSolve(board)
    board.cells[0][0] = Cell.OBSTACLE
    job.start()
    assert job.wait(30)
    assert job.result is True


def test_hint_matches_solution_prefix() -> None:
    board = _board("units-step-onto-camps-5x4")
    full = Solver().solve(board)
    assert Solver().hint(board, count=3) == full[:3]


def test_moves_describe_themselves() -> None:
    assert str(Move(2, 1, Direction.LEFT)) == "Move piece at [2,1] left"


def test_cancel_before_start_stops_the_search() -> None:
    solver = Solver()
    solver.cancel()
    assert solver.find_solution(_board("open-4x4")) is False
    assert solver.last_result.reason == "cancelled"
    assert solver.last_result.explored == 0
    # The request is spent; the next search runs normally.
    assert solver.find_solution(_board("open-4x4"))


def test_background_solve_cancelled_right_after_start() -> None:
    job = BackgroundSolve(LEVELS[3].board(), LEVELS[3].terrain())
    job.cancel()
    job.start()
    assert job.wait(10)
    assert job.result is False
    assert job.solver.last_result.reason == "cancelled"


def test_busy_solver_reports_busy() -> None:
    board = _board("units-step-onto-camps-5x4")
    messages: list[str] = []

    def reenter(progress: SearchProgress) -> None:
        if solver.last_result is not None and not messages:
            with pytest.raises(Unsolvable) as info:
                solver.solve(board)
            messages.append(str(info.value))

    solver = Solver(SolverLimits(report_interval=1), progress=reenter)
    assert solver.find_solution(_board("walled-in-3x2")) is False
    assert solver.last_result.reason == "exhausted"
    assert solver.find_solution(board)
    assert messages and "already running" in messages[0]
    assert "exhausted" not in messages[0]
