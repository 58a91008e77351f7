"""
Business logic for store ratings.

Each user holds at most one rating per store.  The ``ratings`` table
carries a UNIQUE constraint on ``(store_id, user_id)`` and
``submit_rating`` writes through a single ``INSERT ... ON CONFLICT DO
UPDATE`` statement, so a resubmission overwrites the existing row in
place and two concurrent first submissions by the same user can
never produce two rows.

Aggregates (count and average) are recomputed from the table on every
read; nothing is cached.
"""

import logging
import sqlite3
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..core.db import Database
from ..core.errors import NotFoundError
from ..core.validation import validate_rating
from ..schemas.rating import RatingAggregate, RatingRead


logger = logging.getLogger(__name__)

_UPSERT_SQL = """
    INSERT INTO ratings (store_id, user_id, rating)
    VALUES (?, ?, ?)
    ON CONFLICT(store_id, user_id) DO UPDATE SET
        rating = excluded.rating,
        updated_at = CURRENT_TIMESTAMP
"""

_RATING_COLUMNS = "id, rating, store_id, user_id, created_at, updated_at"


def average_rating(total: int, count: int) -> float:
    """Average rounded half‑up to one decimal place; 0 when there are no ratings."""
    if count == 0:
        return 0.0
    average = Decimal(total) / Decimal(count)
    return float(average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def summarize(values: Iterable[int]) -> RatingAggregate:
    values = list(values)
    return RatingAggregate(count=len(values), average=average_rating(sum(values), len(values)))


def rating_from_row(row: sqlite3.Row) -> RatingRead:
    return RatingRead(
        id=row["id"],
        rating=row["rating"],
        store_id=row["store_id"],
        user_id=row["user_id"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class RatingService:
    """Rating ledger: one rating per (store, user) and per‑store aggregates."""

    @classmethod
    async def submit_rating(cls, db: Database, store_id: int, user_id: int, value: int) -> RatingRead:
        """Create or overwrite the caller's rating for a store.

        Raises ``ValidationError`` when ``value`` is not an integer in
        [1, 5] and ``NotFoundError`` when the store does not exist.
        Returns the stored record; its ``id`` is unchanged when an
        earlier rating was overwritten.
        """
        validate_rating(value)
        with db.session() as conn:
            store = conn.execute("SELECT id FROM stores WHERE id = ?", (store_id,)).fetchone()
            if not store:
                raise NotFoundError("Store not found")
            try:
                conn.execute(_UPSERT_SQL, (store_id, user_id, value))
            except sqlite3.IntegrityError:
                # Foreign key failure: the store (or the user) disappeared
                # after the existence check above.
                if conn.execute("SELECT 1 FROM stores WHERE id = ?", (store_id,)).fetchone() is None:
                    raise NotFoundError("Store not found")
                raise NotFoundError("User not found")
            row = conn.execute(
                f"SELECT {_RATING_COLUMNS} FROM ratings WHERE store_id = ? AND user_id = ?",
                (store_id, user_id),
            ).fetchone()
        logger.info("User %s rated store %s with %s", user_id, store_id, value)
        return rating_from_row(row)

    @classmethod
    async def aggregate(cls, db: Database, store_id: int) -> RatingAggregate:
        """Return the count and average of a store's ratings."""
        with db.session() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS count, COALESCE(SUM(rating), 0) AS total FROM ratings WHERE store_id = ?",
                (store_id,),
            ).fetchone()
        return RatingAggregate(count=row["count"], average=average_rating(row["total"], row["count"]))

    @classmethod
    async def get_rating(cls, db: Database, store_id: int, user_id: int) -> Optional[RatingRead]:
        """Return the user's rating for a store, or ``None``."""
        with db.session() as conn:
            row = conn.execute(
                f"SELECT {_RATING_COLUMNS} FROM ratings WHERE store_id = ? AND user_id = ?",
                (store_id, user_id),
            ).fetchone()
        return rating_from_row(row) if row else None
