from __future__ import annotations

from datetime import date
from enum import IntEnum

from pydantic import BaseModel, Field


class Quality(IntEnum):
    """Recall quality offered to the learner after revealing a card."""

    AGAIN = 0
    HARD = 2
    GOOD = 3
    EASY = 5


class Flashcard(BaseModel):
    """Canonical front/back pair produced for a topic by material generation."""

    front: str
    back: str


class FlashcardSet(BaseModel):
    topic_id: str
    cards: list[Flashcard]


class ReviewCard(BaseModel):
    id: str
    user_id: str
    topic_id: str
    front: str
    back: str
    ease_factor: float        # >= 1.3; interval multiplier
    interval_days: int        # 0 only before the first review
    repetitions: int          # consecutive recalls with quality >= 3
    next_review_date: date
    last_reviewed_at: str | None
    created_at: str


class ReviewCardCreate(BaseModel):
    user_id: str
    topic_id: str
    front: str
    back: str
    ease_factor: float = 2.5
    interval_days: int = 0
    repetitions: int = 0
    next_review_date: date


class ReviewCardPatch(BaseModel):
    """Scheduling fields written back after a review."""

    ease_factor: float | None = None
    interval_days: int | None = None
    repetitions: int | None = None
    next_review_date: date | None = None
    last_reviewed_at: str | None = None


class ReviewCardList(BaseModel):
    items: list[ReviewCard]
    total: int


class ImportRequest(BaseModel):
    user_id: str
    topic_id: str
    as_of: date | None = None


class ImportResult(BaseModel):
    user_id: str
    topic_id: str
    created: int = Field(ge=0)


class TopicStats(BaseModel):
    topic_id: str
    total: int
    due: int


class ReviewStats(BaseModel):
    user_id: str
    as_of: date
    total_cards: int
    due_today: int
    reviewed_today: int
    per_topic: list[TopicStats]
