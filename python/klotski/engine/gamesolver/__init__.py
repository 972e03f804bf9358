from klotski.engine.gamesolver.heuristic import heuristic
from klotski.engine.gamesolver.solver import (
    SearchProgress,
    SearchResult,
    Solver,
    SolverLimits,
    is_solvable,
)
from klotski.engine.gamesolver.worker import BackgroundSolve

__all__ = [
    "BackgroundSolve",
    "SearchProgress",
    "SearchResult",
    "Solver",
    "SolverLimits",
    "heuristic",
    "is_solvable",
]
