"""Flat board encoding used inside the search loop.

A board is packed row-major into ``bytes`` with a one-cell border of
obstacle codes around it. A slide then never needs a bounds check, and
the packed value is its own hashable duplicate-detection key. Pieces are
tracked as ``(origin, kind)`` pairs and updated from each move instead
of being re-scanned from the grid.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from klotski.engine.gamerules.rules import Move, goal_origin, leading_edge
from klotski.models.board import PIECE_DIMENSIONS, Board, Cell, Direction
from klotski.models.terrain import Terrain

EMPTY = int(Cell.EMPTY)
TARGET = int(Cell.TARGET)
UNIT = int(Cell.UNIT)
CAMP = int(Cell.CAMP)
WALL = int(Cell.OBSTACLE)

_FLOOR = frozenset({EMPTY})
_UNIT_FLOOR = frozenset({EMPTY, CAMP})

Pieces = tuple[tuple[int, int], ...]


@dataclass(frozen=True)
class Layout:
    """Where a ``height``×``width`` grid sits in a flat cell sequence.

    Cell ``(r, c)`` lives at ``base + r * stride + c``. ``Board.key()``
    is the unpadded case (``stride == width``, ``base == 0``).
    """

    height: int
    width: int
    stride: int
    base: int = 0

    @classmethod
    def of(cls, board: Board) -> Layout:
        return cls(board.height, board.width, board.width)

    @property
    def goal(self) -> tuple[int, int]:
        return self.height - 2, (self.width - 2) // 2

    def index(self, row: int, col: int) -> int:
        return self.base + row * self.stride + col

    def position(self, index: int) -> tuple[int, int]:
        return divmod(index - self.base, self.stride)


_Slide = tuple[Direction, int, tuple[int, ...], tuple[int, ...]]


def _slides(kind: Cell, stride: int) -> tuple[_Slide, ...]:
    """``(direction, delta, leading, trailing)`` offsets from a piece origin."""
    width, height = PIECE_DIMENSIONS[kind]
    plans = []
    for direction in Direction:
        dr, dc = direction.delta
        leading = tuple(
            r * stride + c for r, c in leading_edge(0, 0, width, height, direction)
        )
        # The far edge on the opposite side, stepped back inside the piece.
        trailing = tuple(
            (r + dr) * stride + c + dc
            for r, c in leading_edge(0, 0, width, height, direction.opposite)
        )
        plans.append((direction, dr * stride + dc, leading, trailing))
    return tuple(plans)


class PackedGrid:
    """Packs boards of one geometry and expands packed states.

    Legality matches :func:`~klotski.engine.gamerules.rules.can_move` and
    cell rewriting matches :func:`~klotski.engine.gamerules.rules.apply_move`.
    """

    def __init__(self, board: Board, terrain: Terrain) -> None:
        stride = board.width + 2
        self.layout = Layout(board.height, board.width, stride, stride + 1)
        self.size = stride * (board.height + 2)
        self.goal = self.layout.index(*goal_origin(board))
        self.camps = frozenset(
            self.layout.index(r, c)
            for r, c in terrain.camps
            if board.in_bounds(r, c)
        )
        self._slides = {int(kind): _slides(kind, stride) for kind in PIECE_DIMENSIONS}

    # -- conversion -----------------------------------------------------------

    def pack(self, board: Board) -> tuple[bytes, Pieces]:
        layout = self.layout
        cells = bytearray([WALL]) * self.size
        for r, row in enumerate(board.cells):
            start = layout.index(r, 0)
            # Hidden obstacles (-9) are stored modulo 256.
            cells[start:start + layout.width] = bytes(int(v) & 0xFF for v in row)
        pieces = tuple(
            (layout.index(p.row, p.col), int(p.kind)) for p in board.pieces()
        )
        return bytes(cells), pieces

    def unpack(self, cells: bytes) -> Board:
        layout = self.layout
        rows = []
        for r in range(layout.height):
            start = layout.index(r, 0)
            rows.append(
                [Cell(v if v < 0x80 else v - 0x100) for v in cells[start:start + layout.width]]
            )
        return Board(cells=rows)

    def move(self, origin: int, direction: Direction) -> Move:
        row, col = self.layout.position(origin)
        return Move(row, col, direction)

    # -- search helpers -------------------------------------------------------

    def solved(self, cells: bytes) -> bool:
        goal = self.goal
        below = goal + self.layout.stride
        return (
            cells[goal] == TARGET
            and cells[goal + 1] == TARGET
            and cells[below] == TARGET
            and cells[below + 1] == TARGET
        )

    def expand(
        self, cells: bytes, pieces: Pieces
    ) -> Iterator[tuple[int, Direction, int, bytes, Pieces]]:
        """Yield ``(origin, direction, new_origin, cells, pieces)`` per legal slide.

        Pieces are tried in list order, each in ``Direction`` order.
        """
        camps = self.camps
        slides = self._slides
        for i, (origin, kind) in enumerate(pieces):
            floor = _UNIT_FLOOR if kind == UNIT else _FLOOR
            for direction, delta, leading, trailing in slides[kind]:
                for offset in leading:
                    if cells[origin + offset] not in floor:
                        break
                else:
                    child = bytearray(cells)
                    for offset in trailing:
                        at = origin + offset
                        child[at] = CAMP if at in camps else EMPTY
                    for offset in leading:
                        child[origin + offset] = kind
                    moved = origin + delta
                    yield (
                        origin,
                        direction,
                        moved,
                        bytes(child),
                        pieces[:i] + ((moved, kind),) + pieces[i + 1:],
                    )
