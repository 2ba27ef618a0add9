"""
Review session controller.

A session fetches the learner's due cards once, then walks them one at a time:

    idle --start()--> reviewing(0) --rate()--> reviewing(1) ... --rate()--> complete

Each rate() runs SM-2 on the current card, writes the new schedule to the card
store and only then advances. A failed write leaves the session where it was,
so the same rate() call can simply be repeated. Cards rated Again are not
re-queued; they come back in a later session once due.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone

import aiosqlite

from spaced_review.db.sqlite import update_card
from spaced_review.models.card import Quality, ReviewCard, ReviewCardPatch
from spaced_review.models.session import SessionState, SessionStatus, SessionSummary
from spaced_review.services.due_cards import get_due_cards
from spaced_review.services.errors import (
    EmptyQueueError,
    InvalidQualityError,
    InvalidStateError,
)
from spaced_review.services.sm2 import compute_next_state, next_review_date, validate_quality

logger = logging.getLogger(__name__)

# quality -> XP for one reviewed card; the mapping belongs to gamification
RewardPolicy = Callable[[int], int]


def no_reward(quality: int) -> int:
    return 0


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


@dataclass
class RateOutcome:
    card: ReviewCard
    quality: Quality
    xp_earned: int
    next_index: int | None
    summary: SessionSummary | None = None

    @property
    def complete(self) -> bool:
        return self.summary is not None


class ReviewSession:
    def __init__(
        self,
        user_id: str,
        as_of: date,
        topic_id: str | None = None,
        reward_policy: RewardPolicy = no_reward,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or str(uuid.uuid4())
        self.user_id = user_id
        self.as_of = as_of
        self.topic_id = topic_id
        self.status = SessionStatus.IDLE
        self.session_xp = 0
        self.reviewed: list[ReviewCard] = []
        self._reward_policy = reward_policy
        self._queue: list[ReviewCard] = []
        self._index = 0
        self._lock = asyncio.Lock()

    @property
    def total(self) -> int:
        return len(self._queue)

    @property
    def current_index(self) -> int | None:
        if self.status is not SessionStatus.REVIEWING:
            return None
        return self._index

    @property
    def current_card(self) -> ReviewCard | None:
        if self.status is not SessionStatus.REVIEWING:
            return None
        return self._queue[self._index]

    @property
    def remaining(self) -> list[ReviewCard]:
        """Cards not yet rated in this session, current card first."""
        if self.status is not SessionStatus.REVIEWING:
            return []
        return self._queue[self._index :]

    def summary(self) -> SessionSummary:
        return SessionSummary(reviewed_count=len(self.reviewed), session_xp=self.session_xp)

    async def start(self, db: aiosqlite.Connection) -> ReviewCard:
        """Load the due set and move to reviewing(0). Returns the first card."""
        if self.status is not SessionStatus.IDLE:
            raise self._state_error("start", f"session already {self.status.value}")

        cards = await get_due_cards(db, self.user_id, self.as_of, topic_id=self.topic_id)
        if not cards:
            raise EmptyQueueError(
                f"no cards due for user {self.user_id} on {self.as_of.isoformat()}",
                operation="start_session",
                user_id=self.user_id,
                session_id=self.session_id,
            )

        self._queue = cards
        self._index = 0
        self.status = SessionStatus.REVIEWING
        logger.info(
            "Session %s started for user %s: %d due cards",
            self.session_id,
            self.user_id,
            len(cards),
        )
        return cards[0]

    async def rate(
        self,
        db: aiosqlite.Connection,
        card_id: str,
        quality: int,
        reviewed_at: str | None = None,
    ) -> RateOutcome:
        """Reschedule the current card and advance the session."""
        try:
            q = validate_quality(quality)
        except InvalidQualityError as e:
            e.operation = "rate"
            e.user_id = self.user_id
            e.card_id = card_id
            e.session_id = self.session_id
            raise

        async with self._lock:
            card = self._expect_current(card_id)
            state = compute_next_state(q, card.ease_factor, card.interval_days, card.repetitions)
            patch = ReviewCardPatch(
                ease_factor=state.ease_factor,
                interval_days=state.interval_days,
                repetitions=state.repetitions,
                next_review_date=next_review_date(self.as_of, state.interval_days),
                last_reviewed_at=reviewed_at or _now(),
            )

            updated = await update_card(db, card.id, patch)
            if updated is None:
                logger.warning(
                    "Card %s left the store during session %s; schedule not persisted",
                    card.id,
                    self.session_id,
                )
                updated = card.model_copy(update=patch.model_dump(exclude_none=True))

            xp = self._reward_policy(q)
            self.session_xp += xp
            self.reviewed.append(updated)
            self._index += 1

            if self._index >= len(self._queue):
                self.status = SessionStatus.COMPLETE
                summary = self.summary()
                logger.info(
                    "Session %s complete: %d cards, %d XP",
                    self.session_id,
                    summary.reviewed_count,
                    summary.session_xp,
                )
                return RateOutcome(card=updated, quality=q, xp_earned=xp, next_index=None, summary=summary)

            return RateOutcome(card=updated, quality=q, xp_earned=xp, next_index=self._index)

    def to_state(self) -> SessionState:
        return SessionState(
            session_id=self.session_id,
            user_id=self.user_id,
            topic_id=self.topic_id,
            as_of=self.as_of,
            status=self.status,
            current_index=self.current_index,
            total=self.total,
            current_card=self.current_card,
            reviewed_count=len(self.reviewed),
            session_xp=self.session_xp,
        )

    def _expect_current(self, card_id: str) -> ReviewCard:
        if self.status is not SessionStatus.REVIEWING:
            raise self._state_error("rate", f"session is {self.status.value}", card_id)
        current = self._queue[self._index]
        if current.id != card_id:
            raise self._state_error(
                "rate",
                f"card {card_id} is not the current card (index {self._index} is {current.id})",
                card_id,
            )
        return current

    def _state_error(
        self, operation: str, message: str, card_id: str | None = None
    ) -> InvalidStateError:
        return InvalidStateError(
            message,
            operation=operation,
            user_id=self.user_id,
            card_id=card_id,
            session_id=self.session_id,
        )
