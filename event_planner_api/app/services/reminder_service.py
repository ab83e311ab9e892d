"""
Reminder scheduling for events.

A reminder is armed by writing a row to the ``reminders`` table with
the time it should fire (``event.date - reminder_minutes_before``).  A
polling loop started with the application calls ``run_due``, which
fires every pending row whose time has come.  Because the queue lives
in the database, reminders armed before a restart still fire after it.

Policy for reminders that cannot fire in the future: when the event
has no ``reminder_minutes_before`` or the computed fire time is not
strictly later than now, nothing is armed and the event keeps
``reminder_sent = false``.

Each queue row is claimed with a conditional update from ``pending``
to ``fired`` in the same transaction that sets ``reminder_sent`` and
records the notification, so a reminder fires at most once even when
``run_due`` runs concurrently.  A store failure while firing marks the
row ``failed``; it is logged and not retried.
"""

import logging
import sqlite3
from datetime import datetime, timedelta
from typing import Optional

from ..core.db import as_utc, get_connection, get_cursor, to_db_timestamp, utcnow
from ..core.errors import StoreError, ValidationError
from ..core.logging_config import REMINDER_LOGGER
from ..schemas.event import EventRead
from .event_service import EventService
from .notification_service import NotificationService

logger = logging.getLogger(__name__)
notification_logger = logging.getLogger(REMINDER_LOGGER)

STATUS_PENDING = "pending"
STATUS_FIRED = "fired"
STATUS_FAILED = "failed"
STATUS_CANCELLED = "cancelled"


def reminder_message(event_name: str) -> str:
    return f'Reminder: "{event_name}" is happening soon!'


class ReminderService:
    """Arms, cancels and fires event reminders."""

    @staticmethod
    def compute_fire_at(event: EventRead) -> Optional[datetime]:
        """Return when the reminder for ``event`` is due, or None if it has none."""
        if event.reminder_minutes_before is None:
            return None
        try:
            return as_utc(event.date) - timedelta(minutes=event.reminder_minutes_before)
        except OverflowError:
            raise ValidationError("reminderMinutesBefore is out of range") from None

    @classmethod
    def arm(
        cls, conn: sqlite3.Connection, event: EventRead, now: Optional[datetime] = None
    ) -> Optional[datetime]:
        """Write the queue row for ``event`` on ``conn``; the caller commits.

        Returns the fire time, or None when the reminder was skipped
        (no offset, or a fire time that is not in the future).  Any
        reminder still pending for the event is cancelled first, so an
        event never has more than one armed reminder.
        """
        fire_at = cls.compute_fire_at(event)
        if fire_at is None:
            logger.debug("Event %s has no reminder offset; nothing scheduled", event.id)
            return None
        current = as_utc(now or utcnow())
        if fire_at <= current:
            logger.debug(
                "Reminder for event %s would fire at %s which is not in the future; skipped",
                event.id,
                fire_at.isoformat(),
            )
            return None
        conn.execute(
            "UPDATE reminders SET status = ? WHERE event_id = ? AND status = ?",
            (STATUS_CANCELLED, event.id, STATUS_PENDING),
        )
        conn.execute(
            "INSERT INTO reminders (event_id, fire_at, status) VALUES (?, ?, ?)",
            (event.id, to_db_timestamp(fire_at), STATUS_PENDING),
        )
        logger.info("Scheduled reminder for event %s at %s", event.id, fire_at.isoformat())
        return fire_at

    @classmethod
    async def schedule(cls, event: EventRead, now: Optional[datetime] = None) -> Optional[datetime]:
        """Arm the reminder for an event that is already stored."""
        conn = get_connection()
        try:
            fire_at = cls.arm(conn, event, now=now)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.exception("Failed to schedule reminder for event %s", event.id)
            raise StoreError() from e
        finally:
            conn.close()
        return fire_at

    @classmethod
    async def cancel(cls, event_id: int) -> int:
        """Cancel the pending reminders of an event; return how many were cancelled."""
        try:
            with get_cursor() as cursor:
                cursor.execute(
                    "UPDATE reminders SET status = ? WHERE event_id = ? AND status = ?",
                    (STATUS_CANCELLED, event_id, STATUS_PENDING),
                )
                cancelled = cursor.rowcount
        except sqlite3.Error as e:
            logger.exception("Failed to cancel reminders for event %s", event_id)
            raise StoreError() from e
        if cancelled:
            logger.info("Cancelled %s reminder(s) for event %s", cancelled, event_id)
        return cancelled

    @classmethod
    async def run_due(cls, now: Optional[datetime] = None) -> int:
        """Fire every pending reminder due at ``now``; return the number fired."""
        current = as_utc(now or utcnow())
        conn = get_connection()
        try:
            rows = conn.execute(
                """
                SELECT r.id, r.event_id, e.owner_id, e.name
                FROM reminders r
                JOIN events e ON e.id = r.event_id
                WHERE r.status = ? AND r.fire_at <= ?
                ORDER BY r.fire_at ASC, r.id ASC
                """,
                (STATUS_PENDING, to_db_timestamp(current)),
            ).fetchall()
            fired = 0
            for row in rows:
                if cls._fire(conn, row, current):
                    fired += 1
            return fired
        finally:
            conn.close()

    @classmethod
    def _fire(cls, conn: sqlite3.Connection, row: sqlite3.Row, now: datetime) -> bool:
        reminder_id = row["id"]
        event_id = row["event_id"]
        content = reminder_message(row["name"])
        try:
            claimed = conn.execute(
                "UPDATE reminders SET status = ?, fired_at = ? WHERE id = ? AND status = ?",
                (STATUS_FIRED, to_db_timestamp(now), reminder_id, STATUS_PENDING),
            ).rowcount
            if not claimed:
                # Claimed by another runner, or cancelled since the select.
                conn.rollback()
                return False
            sent = EventService.mark_reminder_sent(conn, event_id)
            if sent:
                NotificationService.record(conn, row["owner_id"], event_id, content, now)
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            logger.exception("Failed to fire reminder %s for event %s", reminder_id, event_id)
            cls._mark_failed(conn, reminder_id)
            return False
        if not sent:
            logger.warning("Event %s was already reminded; reminder %s dropped", event_id, reminder_id)
            return False
        notification_logger.info(content)
        return True

    @staticmethod
    def _mark_failed(conn: sqlite3.Connection, reminder_id: int) -> None:
        try:
            conn.execute(
                "UPDATE reminders SET status = ? WHERE id = ? AND status = ?",
                (STATUS_FAILED, reminder_id, STATUS_PENDING),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            logger.exception("Failed to mark reminder %s as failed", reminder_id)
