"""
Pomodoro-style study timer.

The timer cycles through study, short-break and long-break phases. It is
driven by a ticker that calls :meth:`StudyTimer.tick` once per second; the
timer itself never sleeps, never spawns threads and holds no locks.
Completed study phases are handed to a session store, and every completed
phase produces a best-effort notification.
"""
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum

from .consts import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    STUDY = "study"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


# -------------------------------
# Errors
# -------------------------------

class TimerError(Exception):
    """Base class for study timer errors."""


class InvalidSettingsChange(TimerError):
    """Raised when settings or the subject are edited while that is not allowed."""


class StoreError(TimerError):
    """Raised by a session store when a completed session could not be saved."""


# -------------------------------
# Value objects
# -------------------------------

@dataclass(frozen=True)
class TimerSettings:
    """
    User-configurable durations of the timer.

    Attributes:
        study_minutes (int): Length of a study phase.
        break_minutes (int): Length of a short break.
        long_break_minutes (int): Length of a long break.
        sessions_until_long_break (int): Every n-th completed study phase
            is followed by a long break instead of a short one.
    """
    study_minutes: int = DEFAULT_SETTINGS["study_minutes"]
    break_minutes: int = DEFAULT_SETTINGS["break_minutes"]
    long_break_minutes: int = DEFAULT_SETTINGS["long_break_minutes"]
    sessions_until_long_break: int = DEFAULT_SETTINGS["sessions_until_long_break"]

    def __post_init__(self):
        for name, value in asdict(self).items():
            # bool is an int subclass but never a valid duration
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer")
            if value <= 0:
                raise ValueError(f"{name} must be positive")

    @classmethod
    def from_dict(cls, data, base=None):
        """
        Build settings from a (partial) mapping, filling gaps from ``base``.

        Values are coerced with ``int()``; anything that cannot be coerced
        raises ``ValueError``.
        """
        base = base or cls()
        values = asdict(base)
        for key in values:
            if key in data and data[key] is not None:
                raw = data[key]
                if isinstance(raw, bool):
                    raise ValueError(f"{key} must be an integer")
                try:
                    values[key] = int(raw)
                except (TypeError, ValueError):
                    raise ValueError(f"{key} must be an integer") from None
        return cls(**values)

    def minutes_for(self, phase):
        if phase is Phase.STUDY:
            return self.study_minutes
        if phase is Phase.SHORT_BREAK:
            return self.break_minutes
        return self.long_break_minutes

    def seconds_for(self, phase):
        return self.minutes_for(phase) * 60

    def to_dict(self):
        return asdict(self)


@dataclass
class TimerSession:
    """In-memory countdown state owned by a single StudyTimer."""
    phase: Phase = Phase.STUDY
    remaining_seconds: int = 0
    completed_study_count: int = 0
    subject_label: str = ""
    is_running: bool = False
    is_paused: bool = False


@dataclass(frozen=True)
class PersistedStudySession:
    """A completed study phase, as handed to the session store."""
    user_id: int
    duration_minutes: int
    subject: str = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    type: str = "study"


# -------------------------------
# State machine
# -------------------------------

class StudyTimer:
    """
    Countdown state machine for one user.

    Args:
        user_id (int): Owner of the sessions persisted by this timer.
        store: Object with ``insert(PersistedStudySession)``; may raise StoreError.
        notifier: Object with ``notify(title, body)``; best-effort.
        ticker: Object with ``start(callback)`` and ``cancel()``.
        settings (TimerSettings): Initial settings; defaults if omitted.
    """

    def __init__(self, user_id, store, notifier, ticker, settings=None):
        self.user_id = user_id
        self.settings = settings or TimerSettings()
        self.session = TimerSession(
            remaining_seconds=self.settings.seconds_for(Phase.STUDY)
        )
        self._store = store
        self._notifier = notifier
        self._ticker = ticker
        self._closed = False

    # --- controls ---

    def start(self):
        if self.session.is_running or self._closed:
            return
        self.session.is_running = True
        self.session.is_paused = False
        self._ticker.start(self.tick)
        logger.debug("Timer for user %s started in %s", self.user_id, self.session.phase.value)

    def pause(self):
        if not self.session.is_running or self.session.is_paused:
            return
        self.session.is_paused = True
        self._ticker.cancel()

    def resume(self):
        if not self.session.is_running or not self.session.is_paused:
            return
        self.session.is_paused = False
        self._ticker.start(self.tick)

    def toggle_pause(self):
        if self.session.is_paused:
            self.resume()
        else:
            self.pause()

    def stop(self):
        """Stop the countdown and rewind the current phase to its full length."""
        self._halt()
        self.session.remaining_seconds = self.duration_seconds()

    def reset(self):
        """Stop and start over from the first study phase."""
        self._halt()
        self.session.phase = Phase.STUDY
        self.session.completed_study_count = 0
        self.session.remaining_seconds = self.settings.seconds_for(Phase.STUDY)

    def close(self):
        """Tear the timer down. Safe to call more than once."""
        self._closed = True
        self._halt()

    # --- editing ---

    def update_settings(self, settings):
        if self.session.is_running:
            raise InvalidSettingsChange("Timer settings cannot change while the timer is running")
        self.settings = settings
        self.session.remaining_seconds = self.duration_seconds()

    def set_subject(self, label):
        if self.session.is_running:
            raise InvalidSettingsChange("The subject cannot change while the timer is running")
        if self.session.phase is not Phase.STUDY:
            raise InvalidSettingsChange("The subject can only be set before a study phase")
        self.session.subject_label = (label or "").strip()

    # --- countdown ---

    def tick(self):
        """Advance the countdown by one second."""
        if self._closed or not self.session.is_running or self.session.is_paused:
            return
        self.session.remaining_seconds = max(self.session.remaining_seconds - 1, 0)
        if self.session.remaining_seconds == 0:
            self.session_complete()

    def session_complete(self):
        """
        Finish the current phase.

        Stops the countdown, persists a study session when a study phase
        ended, selects the next phase and notifies the user. A failing
        session store never blocks or reverts the transition.

        Returns:
            Phase: The phase that follows.
        """
        finished = self.session.phase
        self._halt()

        if finished is Phase.STUDY:
            self._persist()
            self.session.completed_study_count += 1
            if self.session.completed_study_count % self.settings.sessions_until_long_break == 0:
                next_phase = Phase.LONG_BREAK
            else:
                next_phase = Phase.SHORT_BREAK
        else:
            next_phase = Phase.STUDY

        self.session.phase = next_phase
        self.session.remaining_seconds = self.settings.seconds_for(next_phase)
        logger.info(
            "User %s finished %s, next phase %s (%d study sessions done)",
            self.user_id,
            finished.value,
            next_phase.value,
            self.session.completed_study_count,
        )

        label = "Study" if finished is Phase.STUDY else "Break"
        self._notifier.notify("Timer Complete!", f"{label} session finished.")
        return next_phase

    # --- read side ---

    def duration_seconds(self, phase=None):
        return self.settings.seconds_for(phase or self.session.phase)

    def progress(self):
        """Fraction of the current phase already elapsed, between 0 and 1."""
        total = self.duration_seconds()
        return (total - self.session.remaining_seconds) / total

    def snapshot(self):
        return {
            "phase": self.session.phase.value,
            "remaining_seconds": self.session.remaining_seconds,
            "clock": format_clock(self.session.remaining_seconds),
            "progress": round(self.progress(), 4),
            "completed_study_count": self.session.completed_study_count,
            "session_number": self.session.completed_study_count + 1,
            "subject": self.session.subject_label,
            "is_running": self.session.is_running,
            "is_paused": self.session.is_paused,
            "settings": self.settings.to_dict(),
        }

    # --- internals ---

    def _halt(self):
        self._ticker.cancel()
        self.session.is_running = False
        self.session.is_paused = False

    def _persist(self):
        record = PersistedStudySession(
            user_id=self.user_id,
            duration_minutes=self.settings.study_minutes,
            subject=self.session.subject_label or None,
        )
        try:
            self._store.insert(record)
        except StoreError:
            logger.exception("Failed to save study session for user %s", self.user_id)
        except Exception:
            # A broken store must not stall the phase change
            logger.exception("Unexpected error saving study session for user %s", self.user_id)


def format_clock(seconds):
    """Format a second count as MM:SS (minutes are not wrapped at 60)."""
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def format_duration(minutes):
    """Format a minute count as ``1h 5m`` or ``45m``."""
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}h {mins}m" if hours > 0 else f"{mins}m"
