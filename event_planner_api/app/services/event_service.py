"""
Business logic for events.

Every query is scoped to the owning user: an event that belongs to
someone else behaves exactly like one that does not exist.
``reminder_sent`` is only ever changed by ``mark_reminder_sent``,
which the reminder scheduler calls inside its own transaction.
"""

import logging
import sqlite3
from typing import Callable, List, Optional

from ..core.db import from_db_timestamp, get_connection, to_db_timestamp
from ..core.errors import NotFoundError, StoreError
from ..schemas.event import EventCategory, EventCreate, EventRead, EventSortField

logger = logging.getLogger(__name__)

_EVENT_COLUMNS = "id, owner_id, name, description, date, category, reminder_minutes_before, reminder_sent"

_ORDER_BY = {
    EventSortField.DATE: "date ASC, id ASC",
    EventSortField.CATEGORY: "category ASC, date ASC, id ASC",
}


def _row_to_event(row: sqlite3.Row) -> EventRead:
    return EventRead(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        description=row["description"],
        date=from_db_timestamp(row["date"]),
        category=EventCategory(row["category"]),
        reminder_minutes_before=row["reminder_minutes_before"],
        reminder_sent=bool(row["reminder_sent"]),
    )


class EventService:
    """Service for storing and querying a user's events."""

    @classmethod
    async def create_event(
        cls,
        owner_id: int,
        data: EventCreate,
        on_created: Optional[Callable[[sqlite3.Connection, EventRead], object]] = None,
    ) -> EventRead:
        """Persist a new event for ``owner_id`` and return it.

        The payload has already been validated by ``EventCreate``;
        ``reminder_sent`` always starts out false.  ``on_created`` is
        called with the connection and the new event before the commit,
        so whatever it writes is stored together with the event or not
        at all.
        """
        logger.info("User %s is creating event '%s'", owner_id, data.name)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO events (owner_id, name, description, date, category, reminder_minutes_before)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    owner_id,
                    data.name,
                    data.description,
                    to_db_timestamp(data.date),
                    data.category.value,
                    data.reminder_minutes_before,
                ),
            )
            row = cursor.execute(
                f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
            event = _row_to_event(row)
            if on_created is not None:
                on_created(conn, event)
            conn.commit()
        except (sqlite3.Error, OverflowError) as e:
            conn.rollback()
            logger.exception("Failed to create event for user %s", owner_id)
            raise StoreError() from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        return event

    @classmethod
    async def list_events(
        cls,
        owner_id: int,
        category: Optional[str] = None,
        reminder_sent: Optional[bool] = None,
        sort_by: str = EventSortField.DATE.value,
    ) -> List[EventRead]:
        """Return the owner's events, optionally filtered.

        - ``category``: only events in this category.  A value that is
          not a known category matches nothing.
        - ``reminder_sent``: only events whose reminder has (True) or has
          not (False) fired.
        - ``sort_by``: ``date`` (default) sorts by date; any other value
          sorts by category.
        """
        if category is not None:
            try:
                category = EventCategory(category)
            except ValueError:
                return []
        if sort_by == EventSortField.DATE.value:
            sort_field = EventSortField.DATE
        else:
            sort_field = EventSortField.CATEGORY
        query = f"SELECT {_EVENT_COLUMNS} FROM events WHERE owner_id = ?"
        params: list = [owner_id]
        if category is not None:
            query += " AND category = ?"
            params.append(category.value)
        if reminder_sent is not None:
            query += " AND reminder_sent = ?"
            params.append(1 if reminder_sent else 0)
        query += f" ORDER BY {_ORDER_BY[sort_field]}"
        conn = get_connection()
        try:
            rows = conn.execute(query, tuple(params)).fetchall()
        except sqlite3.Error as e:
            logger.exception("Failed to list events for user %s", owner_id)
            raise StoreError() from e
        finally:
            conn.close()
        return [_row_to_event(row) for row in rows]

    @classmethod
    async def get_event(cls, owner_id: int, event_id: int) -> EventRead:
        """Retrieve one of the owner's events.  Raises ``NotFoundError``."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = ? AND owner_id = ?",
                (event_id, owner_id),
            ).fetchone()
        except sqlite3.Error as e:
            logger.exception("Failed to load event %s", event_id)
            raise StoreError() from e
        finally:
            conn.close()
        if not row:
            raise NotFoundError(f"Event {event_id} not found")
        return _row_to_event(row)

    @classmethod
    async def delete_event(cls, owner_id: int, event_id: int) -> None:
        """Delete one of the owner's events.

        Reminder queue entries are removed by the ``ON DELETE CASCADE``
        foreign key, so a pending reminder for the event never fires.
        Raises ``NotFoundError`` if the owner has no such event.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM events WHERE id = ? AND owner_id = ?",
                (event_id, owner_id),
            )
            deleted = cursor.rowcount
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.exception("Failed to delete event %s", event_id)
            raise StoreError() from e
        finally:
            conn.close()
        if not deleted:
            raise NotFoundError(f"Event {event_id} not found")
        logger.info("User %s deleted event %s", owner_id, event_id)

    @staticmethod
    def mark_reminder_sent(conn: sqlite3.Connection, event_id: int) -> bool:
        """Flip ``reminder_sent`` from false to true on ``conn``.

        Returns False if the flag was already set (or the event is gone).
        The caller owns the transaction.
        """
        cursor = conn.execute(
            "UPDATE events SET reminder_sent = 1 WHERE id = ? AND reminder_sent = 0",
            (event_id,),
        )
        return cursor.rowcount == 1
