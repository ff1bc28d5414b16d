from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

GOOD_AVERAGE = 60.0
GOOD_CHECKOUT_RATE = 40.0
GOOD_FIRST_9 = 50.0


@dataclass(frozen=True)
class Feedback:
    strengths: tuple[str, ...]
    weaknesses: tuple[str, ...]
    training_tips: tuple[str, ...]


def derive_feedback(
    *,
    total_average: float,
    checkout_rate: float,
    scores_180: int,
    scores_140_plus: int,
    average_first_9: float,
    most_attempted_checkouts: Sequence[int] = (),
) -> Feedback:
    """
    Turn the aggregate numbers into coaching text.

    Rules are evaluated in a fixed order so the output lists are stable:
    scoring average, checkout rate, maximums, consistency, first 9.
    `most_attempted_checkouts` is ordered by attempts, highest first.
    """
    strengths: list[str] = []
    weaknesses: list[str] = []
    tips: list[str] = []

    if total_average >= GOOD_AVERAGE:
        strengths.append("Strong scoring average")
    else:
        weaknesses.append("Scoring average needs improvement")
        tips.append("Practice grouping around treble 20")
        tips.append("Work on consistent throw mechanics")

    if checkout_rate >= GOOD_CHECKOUT_RATE:
        strengths.append("Good checkout percentage")
    else:
        weaknesses.append("Checkout success rate needs work")
        tips.append("Practice double shooting with round the clock")
        if most_attempted_checkouts:
            tips.append(f"Focus on {most_attempted_checkouts[0]} checkout practice")

    if scores_180 > 0:
        strengths.append(f"Hit {scores_180} maximum scores")

    if scores_140_plus > 2 * scores_180:
        strengths.append("Consistent high scoring")

    if average_first_9 < GOOD_FIRST_9:
        tips.append("Focus on strong starting scores")

    return Feedback(strengths=tuple(strengths), weaknesses=tuple(weaknesses), training_tips=tuple(tips))
