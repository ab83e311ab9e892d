"""
Business logic for users.

``UserService`` is the credential store: it registers users with a
salted password hash and verifies login attempts.  A failed login
raises the same ``InvalidCredentialsError`` whether the username is
unknown or the password is wrong.
"""

import logging
import sqlite3
from typing import Optional

from ..core.db import get_connection
from ..core.errors import DuplicateUsernameError, InvalidCredentialsError, StoreError, ValidationError
from ..core.security import hash_password, verify_password
from ..schemas.user import UserRead

logger = logging.getLogger(__name__)


def _require(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return value


class UserService:
    """Service for registering and authenticating users."""

    @classmethod
    async def create_user(cls, username: Optional[str], password: Optional[str]) -> UserRead:
        """Register a new user and return the stored record.

        Raises ``ValidationError`` for a missing or blank username or
        password and ``DuplicateUsernameError`` if the username is taken.
        """
        username = _require(username, "username")
        password = _require(password, "password")
        logger.info("Registering user %s", username)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            existing = cursor.execute(
                "SELECT id FROM users WHERE username = ?", (username,)
            ).fetchone()
            if existing:
                raise DuplicateUsernameError()
            hashed = hash_password(password)
            try:
                cursor.execute(
                    "INSERT INTO users (username, password_hash) VALUES (?, ?)",
                    (username, hashed),
                )
            except sqlite3.IntegrityError as e:
                # Lost a race with a concurrent registration.
                conn.rollback()
                raise DuplicateUsernameError() from e
            user_id = cursor.lastrowid
            conn.commit()
            return UserRead(id=user_id, username=username)
        except sqlite3.Error as e:
            conn.rollback()
            logger.exception("Failed to register user %s", username)
            raise StoreError() from e
        finally:
            conn.close()

    @classmethod
    async def authenticate(cls, username: Optional[str], password: Optional[str]) -> UserRead:
        """Return the user if ``password`` matches the stored hash.

        Raises ``InvalidCredentialsError`` otherwise, including when the
        username or password is missing.
        """
        if not username or not password:
            raise InvalidCredentialsError()
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, username, password_hash FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        except sqlite3.Error as e:
            logger.exception("Failed to look up user %s", username)
            raise StoreError() from e
        finally:
            conn.close()
        if not row or not verify_password(password, row["password_hash"]):
            logger.info("Failed login for %s", username)
            raise InvalidCredentialsError()
        return UserRead(id=row["id"], username=row["username"])

    @classmethod
    async def get_user_by_id(cls, user_id: int) -> Optional[UserRead]:
        """Retrieve a user by ID, without the password hash."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, username FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        except sqlite3.Error as e:
            logger.exception("Failed to load user %s", user_id)
            raise StoreError() from e
        finally:
            conn.close()
        if row:
            return UserRead(id=row["id"], username=row["username"])
        return None
