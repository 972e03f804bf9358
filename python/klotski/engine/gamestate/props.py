"""Prop (power-up) inventory."""

from __future__ import annotations

from enum import StrEnum
from typing import Mapping

from klotski.models.errors import PropUnavailable


class PropType(StrEnum):
    HINT = "hint"
    TIME_BONUS = "time_bonus"
    OBSTACLE_REMOVER = "obstacle_remover"


class PropInventory:
    """Counts of each prop left to the player."""

    def __init__(self, counts: Mapping[str, int] | None = None) -> None:
        self._counts: dict[PropType, int] = {}
        for name, count in (counts or {}).items():
            if count < 0:
                raise ValueError(f"Negative count for prop {name!r}.")
            if count:
                self._counts[PropType(name)] = count

    def count(self, prop: PropType) -> int:
        return self._counts.get(prop, 0)

    def available(self, prop: PropType) -> bool:
        return self.count(prop) > 0

    def use(self, prop: PropType) -> int:
        """Consume one *prop* and return how many are left.

        Raises :class:`PropUnavailable` when none are left.
        """
        left = self.count(prop)
        if left <= 0:
            raise PropUnavailable(f"No {prop.value} props left.")
        self._counts[prop] = left - 1
        return left - 1

    def to_dict(self) -> dict[str, int]:
        return {prop.value: self.count(prop) for prop in PropType}

    def copy(self) -> PropInventory:
        return PropInventory(self.to_dict())
