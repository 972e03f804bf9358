"""Built-in level templates."""

from __future__ import annotations

from dataclasses import dataclass, field

from klotski.models.board import Board, Cell
from klotski.models.terrain import Terrain

_ = Cell.EMPTY
T = Cell.TARGET
B = Cell.BAR
P = Cell.POST
U = Cell.UNIT
X = Cell.TRIPLE
W = Cell.OBSTACLE
C = Cell.CAMP


@dataclass(frozen=True)
class Level:
    """A starting layout plus the props handed out for it.

    ``props`` maps a prop name (see ``PropType``) to its starting count.
    """

    name: str
    rows: tuple[tuple[Cell, ...], ...]
    props: dict[str, int] = field(default_factory=dict)

    @property
    def props_allowed(self) -> bool:
        return bool(self.props)

    def board(self) -> Board:
        return Board(cells=[list(row) for row in self.rows])

    def terrain(self) -> Terrain:
        return Terrain.from_board(self.board())


LEVELS: tuple[Level, ...] = (
    Level(
        name="Easy",
        rows=(
            (P, T, T, P),
            (P, T, T, P),
            (U, B, B, U),
            (P, U, U, P),
            (P, _, _, P),
        ),
    ),
    Level(
        name="Hard",
        rows=(
            (P, T, T, P),
            (P, T, T, P),
            (U, _, _, _),
            (_, _, U, _),
            (B, B, _, _),
            (_, _, _, _),
        ),
        props={"hint": 2, "time_bonus": 3, "obstacle_remover": 1},
    ),
    Level(
        name="Expert",
        rows=(
            (P, U, T, T, U, W),
            (P, U, T, T, W, _),
            (U, B, B, U, W, _),
            (U, X, X, X, U, _),
            (P, U, U, P, C, _),
            (P, _, _, P, _, _),
        ),
        props={"hint": 1, "time_bonus": 2, "obstacle_remover": 2},
    ),
    Level(
        name="Master",
        rows=(
            (P, U, T, T, U, _),
            (P, U, T, T, W, _),
            (U, B, B, U, U, _),
            (_, X, X, X, _, _),
            (U, U, U, U, _, _),
            (_, _, _, _, _, _),
        ),
    ),
)


def get_level(index: int) -> Level:
    """Return level *index*; out-of-range indices fall back to the first level."""
    if not 0 <= index < len(LEVELS):
        index = 0
    return LEVELS[index]
