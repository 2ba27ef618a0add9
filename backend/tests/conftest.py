"""
Shared test fixtures for the review scheduler.

Provides:
- A fresh SQLite card store per test (temporary directory)
- A helper to seed review cards with chosen due dates
- An HTTP client bound to the FastAPI app (no network)
"""

from datetime import date
from typing import Awaitable, Callable, List

import httpx
import pytest
import pytest_asyncio

from spaced_review import app
from spaced_review.db import init_all_databases
from spaced_review.db.sqlite import get_cards_by_user, get_db, insert_cards
from spaced_review.models.card import Flashcard, ReviewCard, ReviewCardCreate
from spaced_review.services.session_registry import clear_sessions

USER_ID = "user-1"
TOPIC_ID = "topic-bio"
AS_OF = date(2024, 1, 5)


@pytest_asyncio.fixture
async def db(tmp_path):
    """Connection to an initialised, empty card store."""
    await init_all_databases(tmp_path)
    async for conn in get_db():
        yield conn


@pytest.fixture
def seed_cards(db) -> Callable[..., Awaitable[List[ReviewCard]]]:
    """Insert one card per due date; returns the user's cards in insertion order."""

    async def _seed(
        due_dates: List[date],
        user_id: str = USER_ID,
        topic_id: str = TOPIC_ID,
        **state,
    ) -> List[ReviewCard]:
        await insert_cards(
            db,
            [
                ReviewCardCreate(
                    user_id=user_id,
                    topic_id=topic_id,
                    front=f"front {i} {d.isoformat()}",
                    back=f"back {i}",
                    next_review_date=d,
                    **state,
                )
                for i, d in enumerate(due_dates)
            ],
        )
        return await get_cards_by_user(db, user_id)

    return _seed


@pytest.fixture
def biology_flashcards() -> List[Flashcard]:
    return [
        Flashcard(front="What is the powerhouse of the cell?", back="Mitochondria"),
        Flashcard(front="What carries genetic information?", back="DNA"),
        Flashcard(front="Where does photosynthesis happen?", back="Chloroplasts"),
    ]


@pytest.fixture(autouse=True)
def _reset_sessions():
    clear_sessions()
    yield
    clear_sessions()


@pytest_asyncio.fixture
async def client(tmp_path):
    """HTTP client for the app; the store lives in a temporary directory."""
    await init_all_databases(tmp_path)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
