"""
Tests for the SQLite card store and the due-card selector.

Run with:
    pytest backend/tests/test_card_store.py -v
"""

from datetime import date

import pytest

from spaced_review.db.sqlite import (
    get_card,
    get_cards_by_topic,
    get_cards_by_user,
    get_review_stats,
    get_topic_flashcards,
    insert_cards,
    set_topic_flashcards,
    update_card,
)
from spaced_review.models.card import Flashcard, ReviewCardCreate, ReviewCardPatch
from spaced_review.services.due_cards import get_due_cards
from spaced_review.services.errors import StoreUnavailableError

from conftest import AS_OF, TOPIC_ID, USER_ID

pytestmark = pytest.mark.asyncio


class TestDueSelection:
    async def test_orders_oldest_first(self, db, seed_cards):
        await seed_cards([date(2024, 1, 3), date(2024, 1, 1), date(2024, 1, 2)])

        due = await get_due_cards(db, USER_ID, AS_OF)

        assert [c.next_review_date for c in due] == [
            date(2024, 1, 1),
            date(2024, 1, 2),
            date(2024, 1, 3),
        ]

    async def test_ties_keep_insertion_order(self, db, seed_cards):
        cards = await seed_cards([date(2024, 1, 2), date(2024, 1, 1), date(2024, 1, 2)])

        due = await get_due_cards(db, USER_ID, AS_OF)

        assert [c.id for c in due] == [cards[1].id, cards[0].id, cards[2].id]

    async def test_includes_cards_due_on_as_of(self, db, seed_cards):
        await seed_cards([AS_OF, date(2024, 1, 6)])

        due = await get_due_cards(db, USER_ID, AS_OF)

        assert [c.next_review_date for c in due] == [AS_OF]

    async def test_scoped_to_user_and_topic(self, db, seed_cards):
        await seed_cards([date(2024, 1, 1)])
        await seed_cards([date(2024, 1, 1)], user_id="user-2")
        await seed_cards([date(2024, 1, 2)], topic_id="topic-chem")

        assert len(await get_due_cards(db, USER_ID, AS_OF)) == 2
        chem = await get_due_cards(db, USER_ID, AS_OF, topic_id="topic-chem")
        assert [c.topic_id for c in chem] == ["topic-chem"]

    async def test_limit(self, db, seed_cards):
        await seed_cards([date(2024, 1, 3), date(2024, 1, 1), date(2024, 1, 2)])

        due = await get_due_cards(db, USER_ID, AS_OF, limit=2)

        assert [c.next_review_date.day for c in due] == [1, 2]

    async def test_zero_limit_and_empty_topic_still_filter(self, db, seed_cards):
        await seed_cards([date(2024, 1, 1), date(2024, 1, 2)])

        assert await get_due_cards(db, USER_ID, AS_OF, limit=0) == []
        assert await get_due_cards(db, USER_ID, AS_OF, topic_id="") == []

    async def test_requery_reflects_updates(self, db, seed_cards):
        cards = await seed_cards([date(2024, 1, 1), date(2024, 1, 2)])
        assert len(await get_due_cards(db, USER_ID, AS_OF)) == 2

        await update_card(db, cards[0].id, ReviewCardPatch(next_review_date=date(2024, 1, 9)))

        assert [c.id for c in await get_due_cards(db, USER_ID, AS_OF)] == [cards[1].id]


class TestCardRecords:
    async def test_new_card_defaults(self, db):
        await insert_cards(
            db,
            [ReviewCardCreate(user_id=USER_ID, topic_id=TOPIC_ID, front="Q", back="A", next_review_date=AS_OF)],
        )

        [card] = await get_cards_by_user(db, USER_ID)
        assert card.ease_factor == 2.5
        assert card.interval_days == 0
        assert card.repetitions == 0
        assert card.next_review_date == AS_OF
        assert card.last_reviewed_at is None
        assert card.id

    async def test_update_card_patch(self, db, seed_cards):
        [card] = await seed_cards([date(2024, 1, 1)])

        updated = await update_card(
            db,
            card.id,
            ReviewCardPatch(
                ease_factor=2.6,
                interval_days=1,
                repetitions=1,
                next_review_date=date(2024, 1, 6),
                last_reviewed_at="2024-01-05 09:30:00",
            ),
        )

        assert updated is not None
        assert updated.ease_factor == pytest.approx(2.6)
        assert updated.next_review_date == date(2024, 1, 6)
        assert updated.front == card.front
        assert (await get_card(db, card.id)) == updated

    async def test_update_unknown_card(self, db):
        assert await update_card(db, "missing", ReviewCardPatch(repetitions=1)) is None

    async def test_failed_bulk_insert_creates_nothing(self, db):
        cards = [
            ReviewCardCreate(user_id=USER_ID, topic_id=TOPIC_ID, front="ok", back="A", next_review_date=AS_OF),
            # violates the ease factor floor
            ReviewCardCreate(
                user_id=USER_ID, topic_id=TOPIC_ID, front="bad", back="B", next_review_date=AS_OF, ease_factor=1.0
            ),
        ]

        with pytest.raises(StoreUnavailableError) as exc:
            await insert_cards(db, cards)

        assert exc.value.operation == "insert_cards"
        assert await get_cards_by_topic(db, USER_ID, TOPIC_ID) == []

    async def test_read_failure_is_store_unavailable(self, db):
        await db.execute("DROP TABLE review_cards")

        with pytest.raises(StoreUnavailableError) as exc:
            await get_due_cards(db, USER_ID, AS_OF)

        assert exc.value.user_id == USER_ID


class TestTopicFlashcards:
    async def test_missing_topic(self, db):
        assert await get_topic_flashcards(db, "nope") is None

    async def test_replace_set(self, db):
        await set_topic_flashcards(db, TOPIC_ID, [Flashcard(front="a", back="1")])
        await set_topic_flashcards(db, TOPIC_ID, [Flashcard(front="b", back="2"), Flashcard(front="c", back="3")])

        cards = await get_topic_flashcards(db, TOPIC_ID)

        assert [fc.front for fc in cards] == ["b", "c"]


async def test_review_stats(db, seed_cards):
    cards = await seed_cards([date(2024, 1, 1), date(2024, 1, 9)])
    await seed_cards([date(2024, 1, 2)], topic_id="topic-chem")
    await update_card(
        db,
        cards[0].id,
        ReviewCardPatch(next_review_date=date(2024, 1, 6), last_reviewed_at="2024-01-05 08:00:00"),
    )

    stats = await get_review_stats(db, USER_ID, AS_OF)

    assert stats.total_cards == 3
    assert stats.due_today == 1
    assert stats.reviewed_today == 1
    assert [(t.topic_id, t.total, t.due) for t in stats.per_topic] == [
        ("topic-bio", 2, 0),
        ("topic-chem", 1, 1),
    ]
