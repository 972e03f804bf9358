"""Exception types raised by the Klotski engine."""

from __future__ import annotations


class KlotskiError(Exception):
    """Base class for every engine error."""


class OutOfBounds(KlotskiError, IndexError):
    """A coordinate lies outside the board."""

    def __init__(self, row: int, col: int, height: int, width: int) -> None:
        super().__init__(
            f"({row}, {col}) is outside the {height}×{width} board."
        )
        self.row = row
        self.col = col


class IllegalMove(KlotskiError):
    """The requested piece cannot slide in that direction."""


class NoHistory(KlotskiError):
    """Undo was requested at the initial snapshot."""


class Unsolvable(KlotskiError):
    """The solver found no goal state within its budget."""


class InvalidBoard(KlotskiError, ValueError):
    """Board data violates a structural invariant."""


class PropUnavailable(KlotskiError):
    """A prop was used with none left (or none allowed on this level)."""
