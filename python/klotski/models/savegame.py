"""Save-game persistence: one JSON record per saved session."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from klotski.engine.gamestate.props import PropType
from klotski.models.board import Board
from klotski.models.errors import InvalidBoard
from klotski.models.terrain import Terrain

# Largest board side accepted from a file.
MAX_SIDE = 10

WAITING = -1


@dataclass
class SaveRecord:
    """Everything needed to rebuild a session.

    ``removed_obstacles`` holds ``[row, col, steps]`` triples where a
    ``steps`` of ``-1`` marks an obstacle waiting for its cell to clear.
    """

    board: list[list[int]]
    move_count: int = 0
    removed_obstacles: list[list[int]] = field(default_factory=list)
    camps: list[list[int]] = field(default_factory=list)
    level: int = 0
    props: dict[str, int] = field(default_factory=dict)

    @property
    def height(self) -> int:
        return len(self.board)

    @property
    def width(self) -> int:
        return len(self.board[0]) if self.board else 0

    # -- conversion -----------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "height": self.height,
            "width": self.width,
            "board": [row[:] for row in self.board],
            "move_count": self.move_count,
            "removed_obstacles": [r[:] for r in self.removed_obstacles],
            "camps": [c[:] for c in self.camps],
            "level": self.level,
            "props": dict(self.props),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SaveRecord:
        """Build a record from parsed JSON, validating it first.

        Raises :class:`InvalidBoard` on any inconsistency.
        """
        try:
            height = int(data["height"])
            width = int(data["width"])
            rows = data["board"]
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidBoard(f"Malformed save record: {exc}") from None

        if not (1 <= height <= MAX_SIDE and 1 <= width <= MAX_SIDE):
            raise InvalidBoard(
                f"Board size {height}×{width} outside 1..{MAX_SIDE}."
            )
        if not isinstance(rows, list) or len(rows) != height:
            raise InvalidBoard("Board height does not match the stored rows.")
        if any(not isinstance(row, list) or len(row) != width for row in rows):
            raise InvalidBoard("Board width does not match the stored rows.")

        board = Board.from_rows(rows)
        board.validate()

        try:
            move_count = int(data.get("move_count", 0))
            level = int(data.get("level", 0))
        except (TypeError, ValueError) as exc:
            raise InvalidBoard(f"Malformed save record: {exc}") from None
        if move_count < 0:
            raise InvalidBoard("Negative move count.")

        removed = [
            _int_list(entry, "removed obstacle")
            for entry in _list(data, "removed_obstacles")
        ]
        for entry in removed:
            if len(entry) != 3:
                raise InvalidBoard(f"Bad removed-obstacle entry {entry!r}.")
            r, c, steps = entry
            if not board.in_bounds(r, c):
                raise InvalidBoard(f"Removed obstacle ({r}, {c}) is off the board.")
            if steps == 0 or steps < WAITING:
                raise InvalidBoard(f"Bad step count {steps} for ({r}, {c}).")

        if "camps" in data:
            pairs = [_int_list(pair, "camp") for pair in _list(data, "camps")]
            if any(len(pair) != 2 for pair in pairs):
                raise InvalidBoard("Camp entries must be [row, col] pairs.")
            terrain = Terrain.from_pairs(pairs)
        else:
            # Older records carry no terrain layer; use the visible camps.
            terrain = Terrain.from_board(board)
        terrain.check(board)

        raw_props = data.get("props", {})
        if not isinstance(raw_props, dict):
            raise InvalidBoard("props must map prop names to counts.")
        known = {p.value for p in PropType}
        props: dict[str, int] = {}
        for name, count in raw_props.items():
            if name not in known:
                raise InvalidBoard(f"Unknown prop {name!r}.")
            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                raise InvalidBoard(f"Bad count {count!r} for prop {name!r}.")
            props[name] = count

        return cls(
            board=board.to_rows(),
            move_count=move_count,
            removed_obstacles=removed,
            camps=terrain.to_pairs(),
            level=level,
            props=props,
        )


def _list(data: dict[str, Any], name: str) -> list[Any]:
    value = data.get(name, [])
    if not isinstance(value, list):
        raise InvalidBoard(f"{name} must be a list.")
    return value


def _int_list(value: Any, what: str) -> list[int]:
    """A JSON array of integers, or :class:`InvalidBoard`."""
    if not isinstance(value, list) or any(
        isinstance(v, bool) or not isinstance(v, int) for v in value
    ):
        raise InvalidBoard(f"Bad {what} entry {value!r}.")
    return list(value)


# -- file I/O -----------------------------------------------------------------


def save_record(path: Path, record: SaveRecord) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(record.to_dict(), indent=2) + "\n")


def load_record(path: Path) -> SaveRecord:
    """Read and validate a record; raises :class:`InvalidBoard` on bad JSON."""
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise InvalidBoard(f"{path} is not valid JSON: {exc}") from None
    if not isinstance(data, dict):
        raise InvalidBoard(f"{path} does not hold a save record.")
    return SaveRecord.from_dict(data)
