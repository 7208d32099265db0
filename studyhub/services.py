"""
Collaborators of the study timer inside the web application.

- SqlSessionStore persists completed study phases with Flask-SQLAlchemy.
- NotificationQueue buffers "Timer Complete!" messages until the client polls.
- TimerRegistry owns one live StudyTimer per user and serialises access to it.
"""
import logging
import threading
from collections import deque
from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import Settings, StudySession
from .ticker import ManualTicker, PeriodicTicker
from .timer import StoreError, StudyTimer, TimerSettings

logger = logging.getLogger(__name__)


class SqlSessionStore:
    """
    Writes PersistedStudySession records to the study_session table.

    The timer may call ``insert`` from its tick thread, so every insert
    runs inside its own application context.
    """

    def __init__(self, app):
        self.app = app

    def insert(self, record):
        with self.app.app_context():
            try:
                db.session.add(
                    StudySession(
                        user_id=record.user_id,
                        duration=record.duration_minutes,
                        type=record.type,
                        subject=record.subject,
                        timestamp=record.timestamp,
                    )
                )
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise StoreError(f"Could not save study session: {exc}") from exc


class NotificationQueue:
    """
    Best-effort notification sink for one user.

    Notifications are dropped silently when disabled. Only the most recent
    ``maxlen`` are kept until the client drains them.
    """

    def __init__(self, enabled=True, maxlen=20):
        self.enabled = enabled
        self._items = deque(maxlen=maxlen)

    def notify(self, title, body):
        if not self.enabled:
            return
        self._items.append({"title": title, "body": body})

    def drain(self):
        items = list(self._items)
        self._items.clear()
        return items


class TimerEntry:
    """A user's timer together with its lock, ticker and notification queue."""

    def __init__(self, timer, lock, ticker, notifications):
        self.timer = timer
        self.lock = lock
        self.ticker = ticker
        self.notifications = notifications


def settings_for(user):
    """Return (TimerSettings, notifications_enabled) from the user's Settings row."""
    row = user.settings or Settings.query.filter_by(user_id=user.id).first()
    if row is None:
        return TimerSettings(), True
    timer_settings = TimerSettings(
        study_minutes=row.study_minutes,
        break_minutes=row.break_minutes,
        long_break_minutes=row.long_break_minutes,
        sessions_until_long_break=row.sessions_until_long_break,
    )
    return timer_settings, bool(row.notifications_enabled)


class TimerRegistry:
    """
    Flask extension holding one StudyTimer per user id.

    Request handlers and the tick thread of a timer share the entry's lock,
    so a timer is never mutated from two threads at once.
    """

    def __init__(self, app=None):
        self.app = None
        self._entries = {}
        self._guard = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        app.extensions["timers"] = self

    def _build(self, user):
        lock = threading.Lock()
        if self.app.config.get("TIMER_START_TICKERS", True):
            ticker = PeriodicTicker(
                interval=self.app.config.get("TIMER_TICK_SECONDS", 1.0),
                lock=lock,
                name=f"study-timer-{user.id}",
            )
        else:
            ticker = ManualTicker()
        timer_settings, enabled = settings_for(user)
        notifications = NotificationQueue(enabled=enabled)
        timer = StudyTimer(
            user_id=user.id,
            store=SqlSessionStore(self.app),
            notifier=notifications,
            ticker=ticker,
            settings=timer_settings,
        )
        return TimerEntry(timer, lock, ticker, notifications)

    def entry(self, user):
        """Return the user's entry, creating it from their settings on first use."""
        with self._guard:
            entry = self._entries.get(user.id)
            if entry is None:
                entry = self._build(user)
                self._entries[user.id] = entry
                logger.debug("Created study timer for user %s", user.id)
            return entry

    def peek(self, user_id):
        return self._entries.get(user_id)

    @contextmanager
    def locked(self, user):
        """Yield the user's StudyTimer while holding its lock."""
        entry = self.entry(user)
        with entry.lock:
            yield entry.timer

    def drain_notifications(self, user):
        entry = self.entry(user)
        with entry.lock:
            return entry.notifications.drain()

    def set_notifications_enabled(self, user, enabled):
        entry = self.entry(user)
        with entry.lock:
            entry.notifications.enabled = bool(enabled)

    def discard(self, user_id):
        """Close and forget a user's timer (logout, account removal)."""
        with self._guard:
            entry = self._entries.pop(user_id, None)
        if entry is not None:
            with entry.lock:
                entry.timer.close()
            logger.debug("Discarded study timer for user %s", user_id)

    def shutdown(self):
        with self._guard:
            user_ids = list(self._entries)
        for user_id in user_ids:
            self.discard(user_id)


def current_timers():
    """The TimerRegistry of the running application."""
    return current_app.extensions["timers"]
