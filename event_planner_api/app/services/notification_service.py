"""
Notifications produced by fired reminders.

``record`` runs inside the reminder scheduler's transaction so that a
notification exists if and only if the event was marked as reminded.
"""

import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from ..core.db import from_db_timestamp, get_connection, to_db_timestamp
from ..core.errors import StoreError
from ..schemas.notification import NotificationRead

logger = logging.getLogger(__name__)


class NotificationService:

    @staticmethod
    def record(
        conn: sqlite3.Connection,
        user_id: int,
        event_id: Optional[int],
        content: str,
        created_at: datetime,
    ) -> int:
        cursor = conn.execute(
            """
            INSERT INTO notifications (user_id, event_id, content, status, created_at)
            VALUES (?, ?, ?, 'sent', ?)
            """,
            (user_id, event_id, content, to_db_timestamp(created_at)),
        )
        return cursor.lastrowid

    @classmethod
    async def list_notifications(cls, user_id: int) -> List[NotificationRead]:
        """Return the user's notifications, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT id, event_id, content, status, created_at
                FROM notifications
                WHERE user_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (user_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.exception("Failed to list notifications for user %s", user_id)
            raise StoreError() from e
        finally:
            conn.close()
        return [
            NotificationRead(
                id=row["id"],
                event_id=row["event_id"],
                content=row["content"],
                status=row["status"],
                created_at=from_db_timestamp(row["created_at"]),
            )
            for row in rows
        ]
