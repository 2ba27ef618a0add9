from __future__ import annotations

from datetime import date

import aiosqlite

from spaced_review.db.sqlite import get_due
from spaced_review.models.card import ReviewCard


async def get_due_cards(
    db: aiosqlite.Connection,
    user_id: str,
    as_of: date,
    topic_id: str | None = None,
    limit: int | None = None,
) -> list[ReviewCard]:
    """
    Return the learner's cards due on or before as_of.

    Oldest-overdue first; cards sharing a date keep insertion order. Each call
    re-reads the store, so the result reflects reviews made since the last call.
    """
    cards = await get_due(db, user_id, as_of, topic_id=topic_id, limit=limit)
    # sorted() is stable, so store (insertion) order survives for equal dates
    return sorted(cards, key=lambda c: c.next_review_date)
