from datetime import datetime, timezone

from .extensions import db
from .consts import DEFAULT_SETTINGS


def utcnow():
    return datetime.now(timezone.utc)


# -------------------------------
# User authentication and profile
# -------------------------------

class User(db.Model):
    """
    Stores user authentication and profile information.

    Attributes:
        id (int): Primary key.
        username (str): Unique username for login.
        password (str): Hashed password.
        email (str): Unique email address.
        settings (relationship): User's timer settings (one-to-one).
        study_sessions (relationship): Completed study sessions.
        routines (relationship): Weekly routine entries.
        syllabi (relationship): Tracked courses and their topics.
        notes (relationship): Notes with tags.
        exams (relationship): Scheduled exams.
    """
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(100), nullable=False)  # Hashed password
    email = db.Column(db.String(100), unique=True, nullable=False)

    # Relationships
    settings = db.relationship(
        "Settings", backref="user", uselist=False, lazy=True, cascade="all, delete-orphan"
    )
    study_sessions = db.relationship(
        "StudySession", backref="user", lazy=True, cascade="all, delete-orphan"
    )
    routines = db.relationship(
        "Routine", backref="user", lazy=True, cascade="all, delete-orphan"
    )
    syllabi = db.relationship(
        "Syllabus", backref="user", lazy=True, cascade="all, delete-orphan"
    )
    notes = db.relationship(
        "Note", backref="user", lazy=True, cascade="all, delete-orphan"
    )
    exams = db.relationship(
        "Exam", backref="user", lazy=True, cascade="all, delete-orphan"
    )

# -------------------------------
# Study timer
# -------------------------------

class Settings(db.Model):
    """
    Stores user-specific study timer preferences.

    Attributes:
        id (int): Primary key.
        user_id (int): Foreign key to User.
        study_minutes (int): Length of a study phase.
        break_minutes (int): Length of a short break.
        long_break_minutes (int): Length of a long break.
        sessions_until_long_break (int): Study phases per long break.
        notifications_enabled (bool): Whether completion notifications are queued.
    """
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, unique=True)
    study_minutes = db.Column(db.Integer, nullable=False, default=DEFAULT_SETTINGS["study_minutes"])
    break_minutes = db.Column(db.Integer, nullable=False, default=DEFAULT_SETTINGS["break_minutes"])
    long_break_minutes = db.Column(
        db.Integer, nullable=False, default=DEFAULT_SETTINGS["long_break_minutes"]
    )
    sessions_until_long_break = db.Column(
        db.Integer, nullable=False, default=DEFAULT_SETTINGS["sessions_until_long_break"]
    )
    notifications_enabled = db.Column(
        db.Boolean, nullable=False, default=DEFAULT_SETTINGS["notifications_enabled"]
    )


class StudySession(db.Model):
    """
    A completed study phase. Written once by the timer, never updated.

    Attributes:
        id (int): Primary key.
        user_id (int): Foreign key to User.
        duration (int): Length in minutes.
        type (str): Always 'study'.
        subject (str): Optional subject the user studied.
        timestamp (datetime): When the phase finished (UTC).
    """
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    duration = db.Column(db.Integer, nullable=False)  # minutes
    type = db.Column(db.String(20), nullable=False, default="study")
    subject = db.Column(db.String(200), nullable=True)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

# -------------------------------
# Routine (weekly schedule)
# -------------------------------

class Routine(db.Model):
    """
    A recurring weekly time slot.

    Attributes:
        day_of_week (int): 0 = Sunday ... 6 = Saturday.
        start_time (str): HH:MM.
        end_time (str): HH:MM.
    """
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    day_of_week = db.Column(db.Integer, nullable=False)
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

# -------------------------------
# Syllabus tracker
# -------------------------------

class Syllabus(db.Model):
    """
    A course with a checklist of topics.

    Attributes:
        course_name (str): Course title.
        topics (list): JSON list of {"id", "name", "completed"} dicts.
        progress (int): Percentage of completed topics (0-100).
    """
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    course_name = db.Column(db.String(200), nullable=False)
    topics = db.Column(db.JSON, nullable=False, default=list)
    progress = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

# -------------------------------
# Notes
# -------------------------------

class Note(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False, default="")
    tags = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

# -------------------------------
# Exams
# -------------------------------

class Exam(db.Model):
    """
    A scheduled exam.

    Attributes:
        subject (str): Exam subject.
        date (date): Exam day.
        time (str): Optional HH:MM start time.
        location (str): Optional room / address.
        mode (str): 'online' or 'offline'.
        marks (int): Optional maximum marks.
        reminders (list): JSON list of reminder entries.
    """
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    subject = db.Column(db.String(200), nullable=False)
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.String(5), nullable=True)
    location = db.Column(db.String(200), nullable=True)
    mode = db.Column(db.String(10), nullable=False, default="offline")
    marks = db.Column(db.Integer, nullable=True)
    reminders = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
