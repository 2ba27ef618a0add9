from __future__ import annotations

import logging
from datetime import date

import aiosqlite

from spaced_review.services.errors import SessionNotFoundError
from spaced_review.services.review_session import ReviewSession, RewardPolicy, no_reward

logger = logging.getLogger(__name__)

_sessions: dict[str, ReviewSession] = {}
_user_sessions: dict[str, str] = {}


async def start_session(
    db: aiosqlite.Connection,
    user_id: str,
    as_of: date,
    topic_id: str | None = None,
    reward_policy: RewardPolicy = no_reward,
) -> ReviewSession:
    """Start and register a session, replacing the user's previous one.

    The previous session is only replaced once the new one has started; on
    EmptyQueueError or StoreUnavailableError the registry is left as it was.
    """
    session = ReviewSession(user_id, as_of, topic_id=topic_id, reward_policy=reward_policy)
    await session.start(db)
    # no await between discard and register: concurrent starts for one user
    # each replace whatever is registered when they finish
    discard_user_session(user_id)
    _sessions[session.session_id] = session
    _user_sessions[user_id] = session.session_id
    return session


def get_session(session_id: str) -> ReviewSession:
    session = _sessions.get(session_id)
    if session is None:
        raise SessionNotFoundError(
            f"session {session_id} not found",
            operation="get_session",
            session_id=session_id,
        )
    return session


def discard_session(session_id: str) -> bool:
    session = _sessions.pop(session_id, None)
    if session is None:
        return False
    if _user_sessions.get(session.user_id) == session_id:
        del _user_sessions[session.user_id]
    logger.info(
        "Session %s discarded (%s, %d reviewed)",
        session_id,
        session.status.value,
        len(session.reviewed),
    )
    return True


def discard_user_session(user_id: str) -> bool:
    session_id = _user_sessions.get(user_id)
    if session_id is None:
        return False
    return discard_session(session_id)


def clear_sessions() -> None:
    _sessions.clear()
    _user_sessions.clear()
