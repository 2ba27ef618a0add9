"""
Errors raised by the review scheduler.

Each error carries the operation it came from and whatever identifiers are
known (user, card, session) so the caller can retry or explain the failure.
"""
from __future__ import annotations


class ReviewError(Exception):
    """Base class for scheduler errors."""

    def __init__(
        self,
        message: str,
        *,
        operation: str = "",
        user_id: str | None = None,
        card_id: str | None = None,
        session_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.user_id = user_id
        self.card_id = card_id
        self.session_id = session_id

    def context(self) -> dict[str, str]:
        ctx = {
            "operation": self.operation,
            "user_id": self.user_id,
            "card_id": self.card_id,
            "session_id": self.session_id,
        }
        return {k: v for k, v in ctx.items() if v}

    def detail(self) -> dict[str, str]:
        """HTTP error detail: the message plus the known identifiers."""
        return {"message": str(self), **self.context()}


class InvalidQualityError(ReviewError, ValueError):
    """Raised for a quality rating outside {0, 2, 3, 5}."""


class EmptyQueueError(ReviewError):
    """Raised when a session is started with no due cards."""


class InvalidStateError(ReviewError):
    """Raised when rate() is called out of turn or after completion."""


class StoreUnavailableError(ReviewError):
    """Raised when the card store fails on read or write."""


class SessionNotFoundError(ReviewError, LookupError):
    """Raised for an unknown or discarded session id."""
