from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from dartstats.scoring.throws import Bed, Multiplier

MAX_CHECKOUT = 170


@dataclass(frozen=True)
class CheckoutRoute:
    """
    A way to finish a remaining score exactly in 1-3 darts, ending on a double.
    """

    beds: tuple[Bed, ...]

    @property
    def total(self) -> int:
        return sum(b.points for b in self.beds)

    def as_strings(self) -> list[str]:
        return [b.label for b in self.beds]


def _all_beds() -> tuple[Bed, ...]:
    beds: list[Bed] = []
    for v in range(1, 21):
        for m in Multiplier:
            beds.append(Bed(v, m))
    beds.append(Bed(25, Multiplier.SINGLE))
    beds.append(Bed(25, Multiplier.DOUBLE))
    return tuple(beds)


ALL_BEDS: tuple[Bed, ...] = _all_beds()
FINISHING_BEDS: tuple[Bed, ...] = tuple(b for b in ALL_BEDS if b.is_double)

# Doubles most players practise, best first.
_COMMON_DOUBLES = (20, 16, 18, 10, 8, 12, 6, 4, 2)


def _bed_weight(b: Bed) -> int:
    """
    Lower is better: common doubles to finish, T20-T16 to set up, then
    singles, low trebles and the outer bull.
    """
    if b.value == 25:
        return 30 if b.is_double else 60

    if b.multiplier is Multiplier.DOUBLE:
        if b.value in _COMMON_DOUBLES:
            return _COMMON_DOUBLES.index(b.value)
        return 15 + (20 - b.value)

    if b.multiplier is Multiplier.TRIPLE:
        if b.value >= 16:
            return 5 + (20 - b.value)
        return 50 + (20 - b.value)

    return 40 + (20 - b.value)


def _route_key(route: tuple[Bed, ...]) -> tuple[int, int, int, str]:
    # fewer darts, nicer double, nicer setup, then label for a stable order
    return (
        len(route),
        _bed_weight(route[-1]),
        sum(_bed_weight(b) for b in route[:-1]),
        ",".join(b.label for b in route),
    )


@lru_cache(maxsize=512)
def suggest_checkouts(remaining: int, *, max_darts: int = 3, limit: int = 6) -> tuple[CheckoutRoute, ...]:
    """
    Return up to `limit` double-out routes for a remaining score.
    Nothing above 170 can be finished in three darts.
    """
    if max_darts not in (1, 2, 3):
        raise ValueError("max_darts must be 1, 2, or 3")
    if remaining <= 1 or remaining > MAX_CHECKOUT or limit <= 0:
        return tuple()

    routes: list[tuple[Bed, ...]] = []

    for d in FINISHING_BEDS:
        if d.points == remaining:
            routes.append((d,))

    if max_darts >= 2:
        for b1 in ALL_BEDS:
            r1 = remaining - b1.points
            if r1 <= 1:
                continue
            for d in FINISHING_BEDS:
                if d.points == r1:
                    routes.append((b1, d))

    if max_darts >= 3:
        for b1 in ALL_BEDS:
            r1 = remaining - b1.points
            if r1 <= 1:
                continue
            for b2 in ALL_BEDS:
                r2 = r1 - b2.points
                if r2 <= 1:
                    continue
                for d in FINISHING_BEDS:
                    if d.points == r2:
                        routes.append((b1, b2, d))

    routes.sort(key=_route_key)

    seen: set[tuple[str, ...]] = set()
    out: list[CheckoutRoute] = []
    for route in routes:
        key = tuple(b.label for b in route)
        if key in seen:
            continue
        seen.add(key)
        out.append(CheckoutRoute(beds=route))
        if len(out) >= limit:
            break
    return tuple(out)
