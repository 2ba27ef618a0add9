from datetime import date

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from spaced_review.db.sqlite import get_card, get_cards_by_topic, get_cards_by_user, get_db
from spaced_review.models.card import ImportRequest, ImportResult, ReviewCard, ReviewCardList
from spaced_review.services.card_import import import_topic
from spaced_review.services.errors import StoreUnavailableError

router = APIRouter()


@router.post("/import", response_model=ImportResult)
async def import_cards_for_topic(
    body: ImportRequest, db: aiosqlite.Connection = Depends(get_db)
):
    """Pull the topic's flashcards into the learner's review queue."""
    try:
        created = await import_topic(
            db, body.user_id, body.topic_id, body.as_of or date.today()
        )
    except StoreUnavailableError as e:
        # the insert is one transaction, so nothing was created
        raise HTTPException(503, e.detail()) from e
    return ImportResult(user_id=body.user_id, topic_id=body.topic_id, created=created)


@router.get("/", response_model=ReviewCardList)
async def list_cards(
    user_id: str,
    topic_id: str | None = Query(default=None),
    db: aiosqlite.Connection = Depends(get_db),
):
    try:
        if topic_id:
            items = await get_cards_by_topic(db, user_id, topic_id)
        else:
            items = await get_cards_by_user(db, user_id)
    except StoreUnavailableError as e:
        raise HTTPException(503, e.detail()) from e
    return ReviewCardList(items=items, total=len(items))


@router.get("/{card_id}", response_model=ReviewCard)
async def get_review_card(card_id: str, db: aiosqlite.Connection = Depends(get_db)):
    try:
        card = await get_card(db, card_id)
    except StoreUnavailableError as e:
        raise HTTPException(503, e.detail()) from e
    if not card:
        raise HTTPException(404, "Card not found")
    return card
