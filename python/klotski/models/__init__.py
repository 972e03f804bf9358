from klotski.models.board import (
    PIECE_DIMENSIONS,
    Board,
    Cell,
    Direction,
    Piece,
    piece_dimensions,
)
from klotski.models.errors import (
    IllegalMove,
    InvalidBoard,
    KlotskiError,
    NoHistory,
    OutOfBounds,
    PropUnavailable,
    Unsolvable,
)
from klotski.models.levels import LEVELS, Level, get_level
from klotski.models.terrain import NO_TERRAIN, Terrain

__all__ = [
    "LEVELS",
    "NO_TERRAIN",
    "PIECE_DIMENSIONS",
    "Board",
    "Cell",
    "Direction",
    "IllegalMove",
    "InvalidBoard",
    "KlotskiError",
    "Level",
    "NoHistory",
    "OutOfBounds",
    "Piece",
    "PropUnavailable",
    "Terrain",
    "Unsolvable",
    "get_level",
    "piece_dimensions",
]
