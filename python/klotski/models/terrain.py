"""Static terrain layout carried alongside a board."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from klotski.models.board import Board, Cell
from klotski.models.errors import InvalidBoard


@dataclass(frozen=True)
class Terrain:
    """Camp coordinates of a level, independent of who stands on them.

    A unit standing on a camp hides the ``CAMP`` code in the grid, so the
    grid alone cannot say where camps are once units move around.
    """

    camps: frozenset[tuple[int, int]] = field(default_factory=frozenset)

    @classmethod
    def from_board(cls, board: Board) -> Terrain:
        """Read camps off the visible ``CAMP`` cells (level templates)."""
        return cls(
            frozenset(
                (r, c)
                for r, row in enumerate(board.cells)
                for c, v in enumerate(row)
                if v == Cell.CAMP
            )
        )

    @classmethod
    def from_pairs(cls, pairs: Iterable[Iterable[int]]) -> Terrain:
        camps: set[tuple[int, int]] = set()
        for pair in pairs:
            r, c = (int(v) for v in pair)
            camps.add((r, c))
        return cls(frozenset(camps))

    def is_camp(self, row: int, col: int) -> bool:
        return (row, col) in self.camps

    def check(self, board: Board) -> None:
        """Raise :class:`InvalidBoard` if a camp is covered by anything but a unit."""
        for r, c in self.camps:
            if not board.in_bounds(r, c):
                raise InvalidBoard(f"Camp ({r}, {c}) is outside the board.")
            if board.cells[r][c] not in (Cell.CAMP, Cell.UNIT):
                raise InvalidBoard(
                    f"Camp ({r}, {c}) holds {board.cells[r][c].name}; "
                    "only units may stand on camps."
                )

    def to_pairs(self) -> list[list[int]]:
        return [[r, c] for r, c in sorted(self.camps)]


NO_TERRAIN = Terrain()
