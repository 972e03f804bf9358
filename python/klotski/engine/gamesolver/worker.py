"""Run a solve on a background thread so a caller's loop stays responsive."""

from __future__ import annotations

import logging
import threading

from klotski.engine.gamesolver.solver import Solver
from klotski.models.board import Board
from klotski.models.terrain import Terrain

logger = logging.getLogger(__name__)


class BackgroundSolve:
    """One ``find_solution`` call on a daemon thread.

    The board is copied before the thread starts, so the caller may keep
    playing on its own board meanwhile.
    """

    def __init__(
        self,
        board: Board,
        terrain: Terrain | None = None,
        solver: Solver | None = None,
    ) -> None:
        self.solver = solver or Solver()
        self.result: bool | None = None
        self.error: BaseException | None = None
        self._board = board.copy()
        self._terrain = terrain
        self._done = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name="klotski-solver", daemon=True
        )

    def start(self) -> BackgroundSolve:
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            self.result = self.solver.find_solution(self._board, self._terrain)
        except Exception as exc:
            logger.exception("Background solve failed")
            self.error = exc
            self.result = False
        finally:
            self._done.set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self) -> None:
        """Stop the search; also honoured if the thread has not begun searching."""
        self.solver.cancel()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the search ends; returns False on timeout."""
        return self._done.wait(timeout)
