"""Board model for the Klotski puzzle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import Iterator, NamedTuple, Sequence

from klotski.models.errors import InvalidBoard, OutOfBounds


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> tuple[int, int]:
        """Row/column offset of a one-cell step."""
        return _DELTAS[self]

    @property
    def opposite(self) -> Direction:
        return _OPPOSITES[self]


_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}

_OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


class Cell(IntEnum):
    """Cell codes. The integer values are the persisted save-file codes."""

    EMPTY = 0
    TARGET = 1
    BAR = 2
    POST = 3
    UNIT = 4
    TRIPLE = 5
    OBSTACLE = 9
    CAMP = 10
    HIDDEN_OBSTACLE = -9

    @property
    def is_piece(self) -> bool:
        return self in PIECE_DIMENSIONS

    @property
    def is_terrain(self) -> bool:
        return self in (Cell.OBSTACLE, Cell.CAMP, Cell.HIDDEN_OBSTACLE)


# (width, height) of every piece kind.
PIECE_DIMENSIONS: dict[Cell, tuple[int, int]] = {
    Cell.TARGET: (2, 2),
    Cell.BAR: (2, 1),
    Cell.POST: (1, 2),
    Cell.UNIT: (1, 1),
    Cell.TRIPLE: (3, 1),
}

_CODES = frozenset(int(c) for c in Cell)


def piece_dimensions(kind: Cell) -> tuple[int, int]:
    """Return ``(width, height)`` for a piece kind."""
    try:
        return PIECE_DIMENSIONS[Cell(kind)]
    except (KeyError, ValueError):
        raise InvalidBoard(f"{kind!r} is not a piece kind.") from None


class Piece(NamedTuple):
    """A piece located by its top-left cell."""

    row: int
    col: int
    kind: Cell

    @property
    def width(self) -> int:
        return PIECE_DIMENSIONS[self.kind][0]

    @property
    def height(self) -> int:
        return PIECE_DIMENSIONS[self.kind][1]

    def footprint(self) -> Iterator[tuple[int, int]]:
        for r in range(self.row, self.row + self.height):
            for c in range(self.col, self.col + self.width):
                yield r, c


@dataclass
class Board:
    """Represents the Klotski grid.

    Cells are stored as a 2D list of :class:`Cell` values, row-major.
    Mutation is left to the move engine, which knows about camps and
    hidden obstacles.
    """

    cells: list[list[Cell]]

    def __post_init__(self) -> None:
        if not self.cells or not self.cells[0]:
            raise InvalidBoard("A board needs at least one row and one column.")
        width = len(self.cells[0])
        if any(len(row) != width for row in self.cells):
            raise InvalidBoard("Board rows have different lengths.")

    # -- construction helpers -------------------------------------------------

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> Board:
        """Create a board from nested integer cell codes.

        Example::

            Board.from_rows([[3, 1, 1, 3], [3, 1, 1, 3], [0, 2, 2, 0]])
        """
        cells: list[list[Cell]] = []
        for r, row in enumerate(rows):
            converted: list[Cell] = []
            for c, value in enumerate(row):
                if isinstance(value, bool) or not isinstance(value, int) or value not in _CODES:
                    raise InvalidBoard(f"Unknown cell code {value!r} at ({r}, {c}).")
                converted.append(Cell(value))
            cells.append(converted)
        return cls(cells)

    def to_rows(self) -> list[list[int]]:
        return [[int(v) for v in row] for row in self.cells]

    # -- queries --------------------------------------------------------------

    @property
    def height(self) -> int:
        return len(self.cells)

    @property
    def width(self) -> int:
        return len(self.cells[0])

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.height and 0 <= col < self.width

    def cell_at(self, row: int, col: int) -> Cell:
        if not self.in_bounds(row, col):
            raise OutOfBounds(row, col, self.height, self.width)
        return self.cells[row][col]

    def key(self) -> tuple[int, ...]:
        """Canonical row-major serialization, used for duplicate detection."""
        return tuple(v for row in self.cells for v in row)

    def empty_count(self) -> int:
        return sum(1 for row in self.cells for v in row if v == Cell.EMPTY)

    def pieces(self) -> list[Piece]:
        """Decompose the grid into pieces, scanning row-major.

        The first unclaimed cell of a piece kind is that piece's origin
        and claims the catalog rectangle at that cell, so stacked pieces
        of one kind (two posts in a column) are told apart.

        Raises :class:`InvalidBoard` if a rectangle does not fit.
        """
        claimed = [[False] * self.width for _ in range(self.height)]
        found: list[Piece] = []
        for r in range(self.height):
            for c in range(self.width):
                kind = self.cells[r][c]
                if claimed[r][c] or not kind.is_piece:
                    continue
                piece = Piece(r, c, kind)
                for pr, pc in piece.footprint():
                    if (
                        not self.in_bounds(pr, pc)
                        or claimed[pr][pc]
                        or self.cells[pr][pc] != kind
                    ):
                        raise InvalidBoard(
                            f"{kind.name} at ({r}, {c}) does not form a "
                            f"{piece.width}×{piece.height} block."
                        )
                    claimed[pr][pc] = True
                found.append(piece)
        return found

    def piece_at(self, row: int, col: int) -> Piece | None:
        """Return the piece covering ``(row, col)``, or ``None``."""
        if not self.cell_at(row, col).is_piece:
            return None
        for piece in self.pieces():
            if (row, col) in piece.footprint():
                return piece
        return None

    def find_target(self) -> tuple[int, int] | None:
        """Origin of the first complete 2×2 target block, if any."""
        for r in range(self.height - 1):
            for c in range(self.width - 1):
                if (
                    self.cells[r][c] == Cell.TARGET
                    and self.cells[r][c + 1] == Cell.TARGET
                    and self.cells[r + 1][c] == Cell.TARGET
                    and self.cells[r + 1][c + 1] == Cell.TARGET
                ):
                    return r, c
        return None

    def validate(self) -> None:
        """Raise :class:`InvalidBoard` unless every piece is well formed.

        Exactly one target piece is required.
        """
        targets = [p for p in self.pieces() if p.kind == Cell.TARGET]
        if len(targets) != 1:
            raise InvalidBoard(
                f"Expected exactly one target piece, found {len(targets)}."
            )

    def copy(self) -> Board:
        return Board(cells=[row[:] for row in self.cells])

    def __str__(self) -> str:
        return "\n".join(
            " ".join(f"{int(v):>2}" for v in row) for row in self.cells
        )
