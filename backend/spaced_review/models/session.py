from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel

from spaced_review.models.card import Quality, ReviewCard


class SessionStatus(str, Enum):
    IDLE = "idle"
    REVIEWING = "reviewing"
    COMPLETE = "complete"


class SessionStartRequest(BaseModel):
    user_id: str
    topic_id: str | None = None
    as_of: date | None = None


class SessionSummary(BaseModel):
    reviewed_count: int
    session_xp: int


class SessionState(BaseModel):
    session_id: str
    user_id: str
    topic_id: str | None
    as_of: date
    status: SessionStatus
    current_index: int | None  # None once complete
    total: int
    current_card: ReviewCard | None
    reviewed_count: int
    session_xp: int


class RateRequest(BaseModel):
    card_id: str
    quality: int  # validated against Quality by the scheduler


class RateResult(BaseModel):
    card: ReviewCard
    quality: Quality
    xp_earned: int
    next_index: int | None
    complete: bool
    summary: SessionSummary | None = None
