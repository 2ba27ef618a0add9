"""
Card import for the review queue.

Pulls a topic's flashcards into a learner's review cards. A flashcard is
matched to an existing card by its exact front text, so re-importing the same
topic creates nothing new. New cards start with ease 2.5, interval 0 and are
due on the import date.
"""
from __future__ import annotations

import logging
from datetime import date

import aiosqlite

from spaced_review.db.sqlite import get_cards_by_topic, get_topic_flashcards, insert_cards
from spaced_review.models.card import Flashcard, ReviewCardCreate
from spaced_review.services.sm2 import DEFAULT_EASE_FACTOR

logger = logging.getLogger(__name__)


def new_flashcards(
    flashcards: list[Flashcard], existing_fronts: set[str]
) -> list[Flashcard]:
    """Flashcards whose front is not already known, first occurrence wins."""
    seen = set(existing_fronts)
    fresh: list[Flashcard] = []
    for fc in flashcards:
        if fc.front in seen:
            continue
        seen.add(fc.front)
        fresh.append(fc)
    return fresh


async def import_cards(
    db: aiosqlite.Connection,
    user_id: str,
    topic_id: str,
    flashcards: list[Flashcard],
    today: date,
) -> int:
    """
    Create review cards for flashcards the learner does not have yet.

    Returns the number of cards created. The insert is a single transaction:
    on StoreUnavailableError nothing was created.
    """
    existing = await get_cards_by_topic(db, user_id, topic_id)
    fresh = new_flashcards(flashcards, {c.front for c in existing})
    if not fresh:
        logger.info("Import %s/%s: nothing new (%d existing)", user_id, topic_id, len(existing))
        return 0

    created = await insert_cards(
        db,
        [
            ReviewCardCreate(
                user_id=user_id,
                topic_id=topic_id,
                front=fc.front,
                back=fc.back,
                ease_factor=DEFAULT_EASE_FACTOR,
                interval_days=0,
                repetitions=0,
                next_review_date=today,
            )
            for fc in fresh
        ],
    )
    logger.info("Import %s/%s: created %d cards", user_id, topic_id, created)
    return created


async def import_topic(
    db: aiosqlite.Connection,
    user_id: str,
    topic_id: str,
    today: date,
) -> int:
    """Import the topic's stored flashcard set. A topic without one imports nothing."""
    flashcards = await get_topic_flashcards(db, topic_id)
    if flashcards is None:
        logger.warning("Topic %s has no flashcard set; nothing to import", topic_id)
        return 0
    return await import_cards(db, user_id, topic_id, flashcards, today)
