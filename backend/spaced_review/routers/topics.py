import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from spaced_review.db.sqlite import get_db, get_topic_flashcards, set_topic_flashcards
from spaced_review.models.card import Flashcard, FlashcardSet
from spaced_review.services.errors import StoreUnavailableError

router = APIRouter()


@router.get("/{topic_id}/flashcards", response_model=FlashcardSet)
async def read_flashcards(topic_id: str, db: aiosqlite.Connection = Depends(get_db)):
    try:
        cards = await get_topic_flashcards(db, topic_id)
    except StoreUnavailableError as e:
        raise HTTPException(503, e.detail()) from e
    if cards is None:
        raise HTTPException(404, "Topic has no flashcards")
    return FlashcardSet(topic_id=topic_id, cards=cards)


@router.put("/{topic_id}/flashcards", response_model=FlashcardSet)
async def replace_flashcards(
    topic_id: str,
    body: list[Flashcard],
    db: aiosqlite.Connection = Depends(get_db),
):
    """Store the topic's generated flashcard set. Existing review cards are untouched."""
    try:
        await set_topic_flashcards(db, topic_id, body)
    except StoreUnavailableError as e:
        raise HTTPException(503, e.detail()) from e
    return FlashcardSet(topic_id=topic_id, cards=body)
