import json
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from spaced_review.config import settings
from spaced_review.models.card import (
    Flashcard,
    ReviewCard,
    ReviewCardCreate,
    ReviewCardPatch,
    ReviewStats,
    TopicStats,
)
from spaced_review.services.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

_db_path: Path | None = None

SCHEMA_VERSION = 1

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS review_cards (
    id               TEXT PRIMARY KEY,
    user_id          TEXT NOT NULL,
    topic_id         TEXT NOT NULL,
    front            TEXT NOT NULL,
    back             TEXT NOT NULL,
    ease_factor      REAL NOT NULL DEFAULT 2.5 CHECK (ease_factor >= 1.3),
    interval_days    INTEGER NOT NULL DEFAULT 0 CHECK (interval_days >= 0),
    repetitions      INTEGER NOT NULL DEFAULT 0 CHECK (repetitions >= 0),
    next_review_date TEXT NOT NULL,
    last_reviewed_at TEXT,
    created_at       TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_review_cards_due ON review_cards(user_id, next_review_date);
CREATE INDEX IF NOT EXISTS idx_review_cards_topic ON review_cards(user_id, topic_id);

CREATE TABLE IF NOT EXISTS topic_flashcards (
    topic_id       TEXT PRIMARY KEY,
    flashcard_json TEXT NOT NULL DEFAULT '[]',
    updated_at     TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        cursor = await db.execute("SELECT MAX(version) FROM schema_version")
        current_version = (await cursor.fetchone())[0]
        await db.commit()
    logger.info("SQLite ready at %s (schema v%s)", _db_path, current_version)


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    assert _db_path is not None, "SQLite not initialized"
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


@contextmanager
def _store_errors(operation: str, **context: str | None) -> Iterator[None]:
    """Re-raise sqlite failures as StoreUnavailableError with call context."""
    try:
        yield
    except aiosqlite.Error as e:
        logger.warning("Card store %s failed (%s): %s", operation, context, e)
        raise StoreUnavailableError(
            f"card store {operation} failed: {e}", operation=operation, **context
        ) from e


def _row_to_card(row: aiosqlite.Row) -> ReviewCard:
    return ReviewCard(**dict(row))


# --- Review cards ---


async def get_card(db: aiosqlite.Connection, card_id: str) -> ReviewCard | None:
    with _store_errors("get_card", card_id=card_id):
        cursor = await db.execute("SELECT * FROM review_cards WHERE id = ?", (card_id,))
        row = await cursor.fetchone()
    return _row_to_card(row) if row else None


async def get_cards_by_user(db: aiosqlite.Connection, user_id: str) -> list[ReviewCard]:
    with _store_errors("get_cards_by_user", user_id=user_id):
        cursor = await db.execute(
            "SELECT * FROM review_cards WHERE user_id = ? ORDER BY rowid ASC",
            (user_id,),
        )
        rows = await cursor.fetchall()
    return [_row_to_card(r) for r in rows]


async def get_cards_by_topic(
    db: aiosqlite.Connection, user_id: str, topic_id: str
) -> list[ReviewCard]:
    with _store_errors("get_cards_by_topic", user_id=user_id):
        cursor = await db.execute(
            "SELECT * FROM review_cards WHERE user_id = ? AND topic_id = ? ORDER BY rowid ASC",
            (user_id, topic_id),
        )
        rows = await cursor.fetchall()
    return [_row_to_card(r) for r in rows]


async def get_due(
    db: aiosqlite.Connection,
    user_id: str,
    as_of: date,
    topic_id: str | None = None,
    limit: int | None = None,
) -> list[ReviewCard]:
    """Cards with next_review_date <= as_of, oldest first, ties in insertion order."""
    query = "SELECT * FROM review_cards WHERE user_id = ? AND next_review_date <= ?"
    params: list = [user_id, as_of.isoformat()]
    if topic_id is not None:
        query += " AND topic_id = ?"
        params.append(topic_id)
    query += " ORDER BY next_review_date ASC, rowid ASC"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)

    with _store_errors("get_due", user_id=user_id):
        cursor = await db.execute(query, params)
        rows = await cursor.fetchall()
    return [_row_to_card(r) for r in rows]


async def insert_cards(db: aiosqlite.Connection, cards: list[ReviewCardCreate]) -> int:
    """Insert all cards in one transaction. Returns the number inserted."""
    if not cards:
        return 0
    now = _now()
    values = [
        (
            str(uuid.uuid4()),
            c.user_id,
            c.topic_id,
            c.front,
            c.back,
            c.ease_factor,
            c.interval_days,
            c.repetitions,
            c.next_review_date.isoformat(),
            now,
        )
        for c in cards
    ]
    with _store_errors("insert_cards", user_id=cards[0].user_id):
        try:
            await db.executemany(
                """INSERT INTO review_cards
                   (id, user_id, topic_id, front, back, ease_factor,
                    interval_days, repetitions, next_review_date, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                values,
            )
            await db.commit()
        except aiosqlite.Error:
            await db.rollback()
            raise
    return len(values)


async def update_card(
    db: aiosqlite.Connection, card_id: str, patch: ReviewCardPatch
) -> ReviewCard | None:
    fields = patch.model_dump(exclude_none=True)
    if not fields:
        return await get_card(db, card_id)

    for key, val in fields.items():
        if isinstance(val, date):
            fields[key] = val.isoformat()

    set_clause = ", ".join(f"{k} = ?" for k in fields)
    values = list(fields.values()) + [card_id]

    with _store_errors("update_card", card_id=card_id):
        cursor = await db.execute(
            f"UPDATE review_cards SET {set_clause} WHERE id = ?",  # noqa: S608
            values,
        )
        await db.commit()
    if (cursor.rowcount or 0) == 0:
        return None
    return await get_card(db, card_id)


async def get_review_stats(
    db: aiosqlite.Connection, user_id: str, as_of: date
) -> ReviewStats:
    """Return total cards, due count, reviews done on as_of and a per-topic breakdown."""
    day = as_of.isoformat()
    with _store_errors("get_review_stats", user_id=user_id):
        cursor = await db.execute(
            """SELECT COUNT(*),
                      SUM(CASE WHEN next_review_date <= ? THEN 1 ELSE 0 END),
                      SUM(CASE WHEN date(last_reviewed_at) = ? THEN 1 ELSE 0 END)
               FROM review_cards WHERE user_id = ?""",
            (day, day, user_id),
        )
        totals = await cursor.fetchone()

        per_topic_cursor = await db.execute(
            """SELECT topic_id,
                      COUNT(*) AS total,
                      SUM(CASE WHEN next_review_date <= ? THEN 1 ELSE 0 END) AS due
               FROM review_cards
               WHERE user_id = ?
               GROUP BY topic_id
               ORDER BY topic_id ASC""",
            (day, user_id),
        )
        per_topic_rows = await per_topic_cursor.fetchall()

    return ReviewStats(
        user_id=user_id,
        as_of=as_of,
        total_cards=totals[0] if totals else 0,
        due_today=(totals[1] or 0) if totals else 0,
        reviewed_today=(totals[2] or 0) if totals else 0,
        per_topic=[
            TopicStats(topic_id=row[0], total=row[1], due=row[2] or 0)
            for row in per_topic_rows
        ],
    )


# --- Topic flashcard sets ---


async def get_topic_flashcards(
    db: aiosqlite.Connection, topic_id: str
) -> list[Flashcard] | None:
    with _store_errors("get_topic_flashcards"):
        cursor = await db.execute(
            "SELECT flashcard_json FROM topic_flashcards WHERE topic_id = ?",
            (topic_id,),
        )
        row = await cursor.fetchone()
    if row is None:
        return None
    return [Flashcard(**fc) for fc in json.loads(row[0])]


async def set_topic_flashcards(
    db: aiosqlite.Connection, topic_id: str, flashcards: list[Flashcard]
) -> None:
    payload = json.dumps([fc.model_dump() for fc in flashcards])
    with _store_errors("set_topic_flashcards"):
        await db.execute(
            "INSERT INTO topic_flashcards(topic_id, flashcard_json, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(topic_id) DO UPDATE SET flashcard_json = excluded.flashcard_json, "
            "updated_at = excluded.updated_at",
            (topic_id, payload, _now()),
        )
        await db.commit()
