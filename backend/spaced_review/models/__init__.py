from spaced_review.models.card import (
    Flashcard,
    FlashcardSet,
    ImportRequest,
    ImportResult,
    Quality,
    ReviewCard,
    ReviewCardCreate,
    ReviewCardList,
    ReviewCardPatch,
    ReviewStats,
    TopicStats,
)
from spaced_review.models.session import (
    RateRequest,
    RateResult,
    SessionStartRequest,
    SessionState,
    SessionStatus,
    SessionSummary,
)

__all__ = [
    "Flashcard",
    "FlashcardSet",
    "ImportRequest",
    "ImportResult",
    "Quality",
    "RateRequest",
    "RateResult",
    "ReviewCard",
    "ReviewCardCreate",
    "ReviewCardList",
    "ReviewCardPatch",
    "ReviewStats",
    "SessionStartRequest",
    "SessionState",
    "SessionStatus",
    "SessionSummary",
    "TopicStats",
]
