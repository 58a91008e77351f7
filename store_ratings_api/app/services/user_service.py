"""
Business logic for users.

Users are created by administrators only (there is no public
registration), log in with email and password, may change their own
password, and can be edited or deleted by administrators.  A user who
still owns stores or has submitted ratings cannot be deleted.
"""

import logging
import sqlite3
from typing import List, Optional

from ..core.db import Database
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.permissions import Role
from ..core.security import hash_password, verify_password
from ..core.validation import validate_email
from ..schemas.user import UserCounts, UserCreate, UserListItem, UserRead, UserUpdate


_USER_COLUMNS = "id, name, email, role, created_at"


def user_from_row(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=Role(row["role"]),
        created_at=row["created_at"],
    )


def like_pattern(term: str) -> str:
    """Escape LIKE wildcards so ``term`` matches literally as a substring."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class UserService:
    """Service for user accounts."""

    @classmethod
    async def create_user(cls, db: Database, data: UserCreate) -> UserRead:
        """Insert a new user with a hashed password.

        Raises ``ConflictError`` if the email is already registered.
        """
        logger = logging.getLogger(__name__)
        hashed = hash_password(data.password)
        try:
            with db.session() as conn:
                cursor = conn.execute(
                    "INSERT INTO users (name, email, password, role) VALUES (?, ?, ?, ?)",
                    (data.name, data.email, hashed, data.role.value),
                )
                row = conn.execute(
                    f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (cursor.lastrowid,)
                ).fetchone()
        except sqlite3.IntegrityError:
            raise ConflictError("Email already exists")
        logger.info("Created %s user %s (%s)", data.role.value, row["id"], data.email)
        return user_from_row(row)

    @classmethod
    async def authenticate(cls, db: Database, email: str, password: str) -> UserRead:
        """Check credentials and return the user.

        Raises ``ValidationError`` for a malformed email, an unknown
        email or a wrong password.
        """
        validate_email(email)
        with db.session() as conn:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS}, password FROM users WHERE email = ?", (email,)
            ).fetchone()
        if not row:
            raise ValidationError("User not found")
        if not verify_password(password, row["password"]):
            raise ValidationError("Invalid password")
        return user_from_row(row)

    @classmethod
    async def change_password(
        cls, db: Database, user_id: int, current_password: str, new_password: str
    ) -> None:
        """Replace the user's password after checking the current one."""
        logger = logging.getLogger(__name__)
        with db.session() as conn:
            row = conn.execute("SELECT id, password FROM users WHERE id = ?", (user_id,)).fetchone()
            if not row:
                raise NotFoundError("User not found")
            if not verify_password(current_password, row["password"]):
                raise ValidationError("Current password is incorrect")
            conn.execute(
                "UPDATE users SET password = ? WHERE id = ?",
                (hash_password(new_password), user_id),
            )
        logger.info("User %s changed password", user_id)

    @classmethod
    async def list_users(
        cls,
        db: Database,
        search: Optional[str] = None,
        role: Optional[str] = None,
    ) -> List[UserListItem]:
        """List users ordered by name with their store and rating counts.

        ``search`` matches the name case‑insensitively.  ``role`` is
        applied only when it names a valid role and ignored otherwise.
        """
        query = (
            "SELECT u.id, u.name, u.email, u.role, u.created_at, "
            "(SELECT COUNT(*) FROM ratings r WHERE r.user_id = u.id) AS ratings_count, "
            "(SELECT COUNT(*) FROM stores s WHERE s.owner_id = u.id) AS stores_count "
            "FROM users u"
        )
        where_clauses = []
        params: list = []
        if search:
            where_clauses.append("u.name LIKE ? ESCAPE '\\'")
            params.append(like_pattern(search))
        role_filter = Role.parse(role)
        if role_filter is not None:
            where_clauses.append("u.role = ?")
            params.append(role_filter.value)
        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)
        query += " ORDER BY u.name COLLATE NOCASE ASC, u.id ASC"

        with db.session() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [
            UserListItem(
                **user_from_row(row).model_dump(),
                counts=UserCounts(ratings=row["ratings_count"], stores=row["stores_count"]),
            )
            for row in rows
        ]

    @classmethod
    async def get_user_by_id(cls, db: Database, user_id: int) -> Optional[UserRead]:
        with db.session() as conn:
            row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        return user_from_row(row) if row else None

    @classmethod
    async def update_user(cls, db: Database, user_id: int, data: UserUpdate) -> UserRead:
        """Replace a user's name, email and role.

        Stores already owned by the user keep their owner even if the
        role no longer is ``OWNER``.
        """
        logger = logging.getLogger(__name__)
        try:
            with db.session() as conn:
                cursor = conn.execute(
                    "UPDATE users SET name = ?, email = ?, role = ? WHERE id = ?",
                    (data.name, data.email, data.role.value, user_id),
                )
                if cursor.rowcount == 0:
                    raise NotFoundError("User not found")
                row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        except sqlite3.IntegrityError:
            raise ConflictError("Email already exists")
        logger.info("Updated user %s", user_id)
        return user_from_row(row)

    @classmethod
    async def delete_user(cls, db: Database, user_id: int, acting_user_id: Optional[int] = None) -> None:
        """Delete a user that owns no stores and has no ratings.

        Raises ``ConflictError`` when the user still has stores or
        ratings, or when an administrator tries to delete their own
        account; ``NotFoundError`` when the user does not exist.
        """
        logger = logging.getLogger(__name__)
        if acting_user_id is not None and acting_user_id == user_id:
            raise ConflictError("Cannot delete your own account")
        try:
            with db.session() as conn:
                row = conn.execute(
                    "SELECT id, "
                    "(SELECT COUNT(*) FROM stores WHERE owner_id = users.id) AS stores_count, "
                    "(SELECT COUNT(*) FROM ratings WHERE user_id = users.id) AS ratings_count "
                    "FROM users WHERE id = ?",
                    (user_id,),
                ).fetchone()
                if not row:
                    raise NotFoundError("User not found")
                if row["stores_count"] > 0 or row["ratings_count"] > 0:
                    raise ConflictError("Cannot delete user with stores or ratings")
                conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        except sqlite3.IntegrityError:
            # A store or rating referencing the user appeared after the check.
            raise ConflictError("Cannot delete user with stores or ratings")
        logger.info("Deleted user %s", user_id)

    @classmethod
    async def ensure_admin(cls, db: Database, name: str, email: str, password: str) -> bool:
        """Create the bootstrap administrator unless the email is taken.

        Returns ``True`` when an account was created.
        """
        logger = logging.getLogger(__name__)
        with db.session() as conn:
            exists = conn.execute("SELECT 1 FROM users WHERE email = ?", (email,)).fetchone()
        if exists:
            return False
        data = UserCreate(name=name, email=email, password=password, role=Role.ADMIN)
        try:
            await cls.create_user(db, data)
        except ConflictError:
            return False
        logger.info("Bootstrap administrator %s created", email)
        return True
