"""
SM-2 - Interval and Ease Factor Update

Pure SuperMemo-2 step (no database calls, no clock).

Quality scale (q):
    1 - Forgot completely
    2 - Wrong, but the answer felt familiar
    3 - Correct with serious difficulty
    4 - Correct after hesitation
    5 - Perfect recall
"""

from __future__ import annotations
from dataclasses import dataclass
import math

from deepgalaxy.scheduling.constants import (
    EF_FLOOR,
    FIRST_INTERVAL_DAYS,
    LAPSE_INTERVAL_DAYS,
    PASSING_QUALITY,
    SECOND_INTERVAL_DAYS,
)


@dataclass(frozen=True)
class Sm2Result:
    """Scheduling state after one SM-2 step."""
    repetitions: int
    interval_days: int
    ease_factor: float


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


def update_ease_factor(ease_factor: float, quality: int) -> float:
    """
    Apply the SM-2 ease update.

    Formula: EF' = EF + (0.1 - d * (0.08 + d * 0.02)), d = 5 - q

    The result is floored at 1.3.
    """
    delta = 5 - quality
    new_ease = ease_factor + (0.1 - delta * (0.08 + delta * 0.02))
    return max(new_ease, EF_FLOOR)


def compute_interval(
    repetitions: int,
    interval_days: int,
    ease_factor: float,
    quality: int
) -> Sm2Result:
    """
    Calculate the next SM-2 state from a graded review.

    - Lapse (q < 3): repetitions reset to 0 and the interval to 1 day.
      The ease factor is not reset.
    - Success: repetitions + 1; intervals are 1, then 6, then round(I * EF).
    - The ease factor is updated in both cases.

    Args:
        repetitions: Successful repetitions since the last lapse (n)
        interval_days: Current interval in days (I)
        ease_factor: Current ease factor (EF)
        quality: Review quality 1-5 (q)

    Returns:
        Sm2Result with the new n, I and EF
    """
    if quality < PASSING_QUALITY:
        new_repetitions = 0
        new_interval = LAPSE_INTERVAL_DAYS
    else:
        new_repetitions = repetitions + 1
        if new_repetitions == 1:
            new_interval = FIRST_INTERVAL_DAYS
        elif new_repetitions == 2:
            new_interval = SECOND_INTERVAL_DAYS
        else:
            new_interval = round_half_up(interval_days * ease_factor)

    return Sm2Result(
        repetitions=new_repetitions,
        interval_days=new_interval,
        ease_factor=update_ease_factor(ease_factor, quality),
    )
