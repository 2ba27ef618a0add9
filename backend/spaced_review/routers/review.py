"""
Review session router.

Endpoints:
  POST   /review/sessions              — start a session over the learner's due cards
  GET    /review/sessions/{id}         — current session state
  POST   /review/sessions/{id}/rate    — rate the current card, run SM-2, advance
                                         (a completed session is dropped after its summary)
  DELETE /review/sessions/{id}         — abandon a session (rated cards stay rescheduled)
  GET    /review/due                   — cards due for a learner, oldest first
  GET    /review/stats                 — totals, due today, reviewed today, per topic
"""
from __future__ import annotations

from datetime import date

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from spaced_review.config import settings
from spaced_review.db.sqlite import get_db, get_review_stats
from spaced_review.models.card import ReviewCardList, ReviewStats
from spaced_review.models.session import (
    RateRequest,
    RateResult,
    SessionStartRequest,
    SessionState,
)
from spaced_review.services.due_cards import get_due_cards
from spaced_review.services.errors import (
    EmptyQueueError,
    InvalidQualityError,
    InvalidStateError,
    SessionNotFoundError,
    StoreUnavailableError,
)
from spaced_review.services.review_session import ReviewSession
from spaced_review.services.session_registry import (
    discard_session,
    get_session,
    start_session,
)
from spaced_review.services.sm2 import PASSING_QUALITY

router = APIRouter()


def _xp_for_quality(quality: int) -> int:
    return settings.xp_recalled if quality >= PASSING_QUALITY else settings.xp_forgotten


def _session_or_404(session_id: str) -> ReviewSession:
    try:
        return get_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.detail()) from e


# --- Sessions ---


@router.post("/sessions", response_model=SessionState, status_code=201)
async def create_session(
    body: SessionStartRequest,
    db: aiosqlite.Connection = Depends(get_db),
) -> SessionState:
    """Start a review session. 404 means the learner is all caught up."""
    as_of = body.as_of or date.today()
    try:
        session = await start_session(
            db,
            body.user_id,
            as_of,
            topic_id=body.topic_id,
            reward_policy=_xp_for_quality,
        )
    except EmptyQueueError as e:
        raise HTTPException(status_code=404, detail=e.detail()) from e
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.detail()) from e
    return session.to_state()


@router.get("/sessions/{session_id}", response_model=SessionState)
async def read_session(session_id: str) -> SessionState:
    return _session_or_404(session_id).to_state()


@router.post("/sessions/{session_id}/rate", response_model=RateResult)
async def rate_card(
    session_id: str,
    body: RateRequest,
    db: aiosqlite.Connection = Depends(get_db),
) -> RateResult:
    """Submit a quality rating (0, 2, 3 or 5) for the session's current card."""
    session = _session_or_404(session_id)
    try:
        outcome = await session.rate(db, body.card_id, body.quality)
    except InvalidQualityError as e:
        raise HTTPException(status_code=422, detail=e.detail()) from e
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=e.detail()) from e
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.detail()) from e

    if outcome.complete:
        # the summary goes out with this response; nothing left to poll
        discard_session(session_id)

    return RateResult(
        card=outcome.card,
        quality=outcome.quality,
        xp_earned=outcome.xp_earned,
        next_index=outcome.next_index,
        complete=outcome.complete,
        summary=outcome.summary,
    )


@router.delete("/sessions/{session_id}", status_code=204)
async def abandon_session(session_id: str) -> None:
    if not discard_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")


# --- Due cards & stats ---


@router.get("/due", response_model=ReviewCardList)
async def list_due(
    user_id: str,
    as_of: date | None = Query(default=None),
    topic_id: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=settings.due_limit_max),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewCardList:
    """Return cards due on or before as_of (default today), oldest first."""
    try:
        items = await get_due_cards(
            db, user_id, as_of or date.today(), topic_id=topic_id, limit=limit
        )
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.detail()) from e
    return ReviewCardList(items=items, total=len(items))


@router.get("/stats", response_model=ReviewStats)
async def review_stats(
    user_id: str,
    as_of: date | None = Query(default=None),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewStats:
    try:
        return await get_review_stats(db, user_id, as_of or date.today())
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.detail()) from e
