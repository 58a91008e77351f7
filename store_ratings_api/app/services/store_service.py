"""
Business logic for stores.

Stores are managed by administrators.  Each store belongs to a user
whose role is ``OWNER`` at the time the store is created or updated;
the owner's role is not re‑checked afterwards.  Deleting a store
removes its ratings through the ``ON DELETE CASCADE`` foreign key.

Listings attach the owner, the individual ratings and the aggregate
computed from those ratings at read time.
"""

import logging
import sqlite3
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from ..core.db import Database
from ..core.errors import NotFoundError, ValidationError
from ..core.permissions import Role
from ..schemas.store import (
    OwnerStoreItem,
    OwnerStoreRatingRead,
    OwnerSummary,
    RaterDetail,
    RaterSummary,
    StoreCreate,
    StoreListItem,
    StoreRatingRead,
    StoreUpdate,
    StoreWithOwner,
)
from .rating_service import summarize
from .user_service import like_pattern


logger = logging.getLogger(__name__)

_STORE_WITH_OWNER_SQL = (
    "SELECT s.id, s.name, s.address, s.owner_id, s.created_at, "
    "u.name AS owner_name, u.email AS owner_email "
    "FROM stores s JOIN users u ON u.id = s.owner_id"
)


def _store_with_owner(row: sqlite3.Row) -> StoreWithOwner:
    return StoreWithOwner(
        id=row["id"],
        name=row["name"],
        address=row["address"],
        owner_id=row["owner_id"],
        created_at=row["created_at"],
        owner=OwnerSummary(id=row["owner_id"], name=row["owner_name"], email=row["owner_email"]),
    )


def _fetch_ratings(conn: sqlite3.Connection, store_ids: Sequence[int]) -> Dict[int, List[sqlite3.Row]]:
    """Return the ratings of ``store_ids`` grouped by store, with rater details."""
    grouped: Dict[int, List[sqlite3.Row]] = defaultdict(list)
    if not store_ids:
        return grouped
    placeholders = ", ".join("?" for _ in store_ids)
    rows = conn.execute(
        "SELECT r.id, r.rating, r.store_id, r.user_id, r.created_at, r.updated_at, "
        "u.name AS user_name, u.email AS user_email "
        f"FROM ratings r JOIN users u ON u.id = r.user_id WHERE r.store_id IN ({placeholders}) "
        "ORDER BY r.id ASC",
        tuple(store_ids),
    ).fetchall()
    for row in rows:
        grouped[row["store_id"]].append(row)
    return grouped


def _rating_fields(row: sqlite3.Row) -> dict:
    return {
        "id": row["id"],
        "rating": row["rating"],
        "store_id": row["store_id"],
        "user_id": row["user_id"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


class StoreService:
    """Service for managing and listing stores."""

    @staticmethod
    def _require_owner(conn: sqlite3.Connection, owner_id: int) -> None:
        owner = conn.execute("SELECT role FROM users WHERE id = ?", (owner_id,)).fetchone()
        if not owner or owner["role"] != Role.OWNER.value:
            raise ValidationError("Invalid owner ID or user is not a store owner")

    @classmethod
    async def create_store(cls, db: Database, data: StoreCreate) -> StoreWithOwner:
        with db.session() as conn:
            cls._require_owner(conn, data.owner_id)
            cursor = conn.execute(
                "INSERT INTO stores (name, address, owner_id) VALUES (?, ?, ?)",
                (data.name, data.address, data.owner_id),
            )
            row = conn.execute(f"{_STORE_WITH_OWNER_SQL} WHERE s.id = ?", (cursor.lastrowid,)).fetchone()
        logger.info("Created store %s owned by user %s", row["id"], data.owner_id)
        return _store_with_owner(row)

    @classmethod
    async def get_store(cls, db: Database, store_id: int) -> Optional[StoreWithOwner]:
        with db.session() as conn:
            row = conn.execute(f"{_STORE_WITH_OWNER_SQL} WHERE s.id = ?", (store_id,)).fetchone()
        return _store_with_owner(row) if row else None

    @classmethod
    async def update_store(cls, db: Database, store_id: int, data: StoreUpdate) -> StoreWithOwner:
        """Replace a store's name, address and owner.

        Raises ``NotFoundError`` for an unknown store and
        ``ValidationError`` when the new owner is not an ``OWNER``.
        """
        with db.session() as conn:
            if not conn.execute("SELECT 1 FROM stores WHERE id = ?", (store_id,)).fetchone():
                raise NotFoundError("Store not found")
            cls._require_owner(conn, data.owner_id)
            conn.execute(
                "UPDATE stores SET name = ?, address = ?, owner_id = ? WHERE id = ?",
                (data.name, data.address, data.owner_id, store_id),
            )
            row = conn.execute(f"{_STORE_WITH_OWNER_SQL} WHERE s.id = ?", (store_id,)).fetchone()
        logger.info("Updated store %s", store_id)
        return _store_with_owner(row)

    @classmethod
    async def delete_store(cls, db: Database, store_id: int) -> None:
        """Delete a store together with all of its ratings."""
        with db.session() as conn:
            cursor = conn.execute("DELETE FROM stores WHERE id = ?", (store_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Store not found")
        logger.info("Deleted store %s and its ratings", store_id)

    @classmethod
    async def list_stores(cls, db: Database, search: Optional[str] = None) -> List[StoreListItem]:
        """List stores ordered by name with owner, ratings and aggregate.

        ``search`` matches the store name or address case‑insensitively.
        """
        query = _STORE_WITH_OWNER_SQL
        params: list = []
        if search:
            query += " WHERE s.name LIKE ? ESCAPE '\\' OR s.address LIKE ? ESCAPE '\\'"
            pattern = like_pattern(search)
            params.extend([pattern, pattern])
        query += " ORDER BY s.name COLLATE NOCASE ASC, s.id ASC"

        with db.session() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
            ratings = _fetch_ratings(conn, [row["id"] for row in rows])

        results: List[StoreListItem] = []
        for row in rows:
            store_ratings = ratings.get(row["id"], [])
            aggregate = summarize(r["rating"] for r in store_ratings)
            results.append(
                StoreListItem(
                    **_store_with_owner(row).model_dump(),
                    ratings=[
                        StoreRatingRead(
                            **_rating_fields(r),
                            user=RaterSummary(id=r["user_id"], name=r["user_name"]),
                        )
                        for r in store_ratings
                    ],
                    average_rating=aggregate.average,
                    total_ratings=aggregate.count,
                )
            )
        return results

    @classmethod
    async def list_owner_stores(cls, db: Database, owner_id: int) -> List[OwnerStoreItem]:
        """List the stores owned by ``owner_id`` with each rater's details."""
        with db.session() as conn:
            rows = conn.execute(
                "SELECT id, name, address, owner_id, created_at FROM stores "
                "WHERE owner_id = ? ORDER BY name COLLATE NOCASE ASC, id ASC",
                (owner_id,),
            ).fetchall()
            ratings = _fetch_ratings(conn, [row["id"] for row in rows])

        results: List[OwnerStoreItem] = []
        for row in rows:
            store_ratings = ratings.get(row["id"], [])
            aggregate = summarize(r["rating"] for r in store_ratings)
            results.append(
                OwnerStoreItem(
                    id=row["id"],
                    name=row["name"],
                    address=row["address"],
                    owner_id=row["owner_id"],
                    created_at=row["created_at"],
                    ratings=[
                        OwnerStoreRatingRead(
                            **_rating_fields(r),
                            user=RaterDetail(id=r["user_id"], name=r["user_name"], email=r["user_email"]),
                        )
                        for r in store_ratings
                    ],
                    average_rating=aggregate.average,
                    total_ratings=aggregate.count,
                )
            )
        return results
