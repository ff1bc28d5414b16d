from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class Multiplier(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"

    @property
    def factor(self) -> int:
        return _FACTORS[self]


_FACTORS = {Multiplier.SINGLE: 1, Multiplier.DOUBLE: 2, Multiplier.TRIPLE: 3}


@dataclass(frozen=True)
class Bed:
    """
    A scoring segment on the board.

    - value: 1-20 for standard beds, 25 for bull
    - multiplier: single, double or triple (the bull has no triple)
    """

    value: int
    multiplier: Multiplier

    def __post_init__(self) -> None:
        if self.value not in (*range(1, 21), 25):
            raise ValueError("value must be 1-20 or 25 (bull)")
        if self.value == 25 and self.multiplier is Multiplier.TRIPLE:
            raise ValueError("bull cannot be a triple")

    @property
    def points(self) -> int:
        return self.value * self.multiplier.factor

    @property
    def is_double(self) -> bool:
        return self.multiplier is Multiplier.DOUBLE

    @property
    def label(self) -> str:
        if self.value == 25:
            return "DBULL" if self.is_double else "SBULL"
        return f"{self.multiplier.value[0].upper()}{self.value}"


TurnKey = tuple[int, int]


@dataclass(frozen=True)
class Throw:
    """
    One recorded dart from a game log.

    `score` is the player's remaining score as stored alongside the throw. Logs
    written by older clients omit it, so it may be None.
    """

    value: int
    multiplier: Multiplier
    player_index: int
    score: int | None = None
    leg: int = 1
    turn_index: int = 0
    was_bust: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 25:
            raise ValueError("value must be between 0 (miss) and 25 (bull)")

    @property
    def points(self) -> int:
        return self.value * self.multiplier.factor

    @property
    def turn_key(self) -> TurnKey:
        return (self.leg, self.turn_index)


def sort_throws(throws: Iterable[Throw]) -> list[Throw]:
    """Order throws by (leg, turn_index). Stable, so darts within a turn keep log order."""
    return sorted(throws, key=lambda t: t.turn_key)


def group_turns(throws: Iterable[Throw]) -> dict[TurnKey, list[Throw]]:
    """
    Group throws into turns keyed by (leg, turn_index).

    Keys are inserted in first-seen order, so feeding an already sorted list
    yields turns in ascending key order.
    """
    turns: dict[TurnKey, list[Throw]] = {}
    for t in throws:
        turns.setdefault(t.turn_key, []).append(t)
    return turns


def turn_points(turn: Iterable[Throw]) -> int:
    return sum(t.points for t in turn)
