"""
SM-2 scheduling for review cards.

Pure functions only: given a quality rating and a card's current
ease/interval/repetition state, compute the next state. No I/O.

Quality ratings offered to learners are 0 (Again), 2 (Hard), 3 (Good) and
5 (Easy). Ratings below 3 count as a failed recall.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta

from spaced_review.models.card import Quality
from spaced_review.services.errors import InvalidQualityError

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
FAILED_EASE_PENALTY = 0.2
PASSING_QUALITY = 3

_VALID_QUALITIES = frozenset(q.value for q in Quality)


@dataclass(frozen=True)
class Sm2State:
    ease_factor: float
    interval_days: int
    repetitions: int


def validate_quality(quality: int) -> Quality:
    """Return the rating as a Quality, raising InvalidQualityError otherwise."""
    if isinstance(quality, bool) or quality not in _VALID_QUALITIES:
        raise InvalidQualityError(
            f"quality must be one of {sorted(_VALID_QUALITIES)}, got {quality!r}",
            operation="compute_next_state",
        )
    return Quality(quality)


def round_interval(value: float) -> int:
    """Round half away from zero (2.5 -> 3), unlike the builtin round()."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def compute_next_state(
    quality: int,
    ease_factor: float,
    interval_days: int,
    repetitions: int,
) -> Sm2State:
    """
    Compute the card state after one review.

    Failed recall resets repetitions, schedules the card for tomorrow and
    lowers the ease factor by 0.2. A successful recall adjusts the ease factor
    by the SM-2 formula and grows the interval from the repetition count held
    *before* this review: 1 day, then 6 days, then interval * new ease factor.
    The ease factor never drops below 1.3.
    """
    q = validate_quality(quality)

    if q < PASSING_QUALITY:
        return Sm2State(
            ease_factor=max(MIN_EASE_FACTOR, ease_factor - FAILED_EASE_PENALTY),
            interval_days=1,
            repetitions=0,
        )

    # q=5 adds 0.1, q=3 subtracts 0.14
    new_ease = max(
        MIN_EASE_FACTOR,
        ease_factor + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)),
    )

    if repetitions == 0:
        new_interval = 1
    elif repetitions == 1:
        new_interval = 6
    else:
        new_interval = round_interval(interval_days * new_ease)

    return Sm2State(
        ease_factor=new_ease,
        interval_days=new_interval,
        repetitions=repetitions + 1,
    )


def next_review_date(as_of: date, interval_days: int) -> date:
    return as_of + timedelta(days=interval_days)
