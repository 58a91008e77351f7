"""
Service layer for the administrator dashboard.

All queries are read‑only.  Store averages are computed from the
ratings table at request time with the same rounding as the store
listings.
"""

from __future__ import annotations

from ..core.db import Database
from ..schemas.dashboard import DashboardRead, TopStore
from .rating_service import average_rating


TOP_STORES_LIMIT = 5


class StatisticsService:
    """Aggregated counters for administrators."""

    @classmethod
    async def dashboard(cls, db: Database) -> DashboardRead:
        """Return totals, users per role and the most rated stores.

        ``usersByRole`` only lists roles that have at least one user.
        Top stores are ordered by number of ratings, ties broken by id.
        """
        with db.session() as conn:
            total_users = conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]
            total_stores = conn.execute("SELECT COUNT(*) FROM stores").fetchone()[0]
            total_ratings = conn.execute("SELECT COUNT(*) FROM ratings").fetchone()[0]
            role_rows = conn.execute(
                "SELECT role, COUNT(*) AS count FROM users GROUP BY role ORDER BY role"
            ).fetchall()
            top_rows = conn.execute(
                "SELECT s.id, s.name, u.name AS owner_name, "
                "COUNT(r.id) AS rating_count, COALESCE(SUM(r.rating), 0) AS rating_total "
                "FROM stores s "
                "JOIN users u ON u.id = s.owner_id "
                "LEFT JOIN ratings r ON r.store_id = s.id "
                "GROUP BY s.id, s.name, u.name "
                "ORDER BY rating_count DESC, s.id ASC "
                "LIMIT ?",
                (TOP_STORES_LIMIT,),
            ).fetchall()

        return DashboardRead(
            total_users=total_users,
            total_stores=total_stores,
            total_ratings=total_ratings,
            users_by_role={row["role"]: row["count"] for row in role_rows},
            top_stores=[
                TopStore(
                    id=row["id"],
                    name=row["name"],
                    average_rating=average_rating(row["rating_total"], row["rating_count"]),
                    total_ratings=row["rating_count"],
                    owner=row["owner_name"],
                )
                for row in top_rows
            ],
        )
