from flask import Blueprint, jsonify
from datetime import date
import math

from ..extensions import db
from ..models import StudySession, Exam, Syllabus, Routine
from ..utils import login_required
from ..consts import DASHBOARD_UPCOMING_EXAMS, DASHBOARD_RECENT_SESSIONS
from .routines import routine_json
from .timer import session_json
from .exams import exam_json

main_bp = Blueprint("main", __name__)


@main_bp.route("/health")
def health():
    """Liveness check for the hosting platform."""
    return jsonify({"status": "ok"}), 200


@main_bp.route("/api/dashboard", methods=["GET"])
@login_required
def dashboard(user):
    """
    Dashboard route: aggregates the user's data for the landing page.

    - Total study time from all completed study sessions.
    - Upcoming exams (today or later, at most five).
    - Average syllabus progress.
    - Today's routines (weekday numbering starts with Sunday = 0).
    - The five most recent study sessions.

    Returns:
        JSON: The dashboard statistics and lists.
    """
    today = date.today()

    # 1. Total study time
    total_minutes = (
        db.session.query(db.func.coalesce(db.func.sum(StudySession.duration), 0))
        .filter(StudySession.user_id == user.id)
        .scalar()
    )

    # 2. Upcoming exams
    upcoming_exams = (
        Exam.query.filter(Exam.user_id == user.id, Exam.date >= today)
        .order_by(Exam.date, Exam.time, Exam.id)
        .limit(DASHBOARD_UPCOMING_EXAMS)
        .all()
    )

    # 3. Syllabus progress (plain average over all courses)
    progresses = [
        p for (p,) in db.session.query(Syllabus.progress).filter(Syllabus.user_id == user.id)
    ]
    avg_progress = sum(progresses) / len(progresses) if progresses else 0

    # 4. Today's routines
    day_of_week = (today.weekday() + 1) % 7
    todays_routines = (
        Routine.query.filter_by(user_id=user.id, day_of_week=day_of_week)
        .order_by(Routine.start_time)
        .all()
    )

    # 5. Recent activity
    recent_sessions = (
        StudySession.query.filter_by(user_id=user.id)
        .order_by(StudySession.timestamp.desc(), StudySession.id.desc())
        .limit(DASHBOARD_RECENT_SESSIONS)
        .all()
    )

    return jsonify(
        {
            "stats": {
                "total_study_minutes": int(total_minutes),
                "total_study_hours": math.floor(total_minutes / 60 + 0.5),
                "upcoming_exams": len(upcoming_exams),
                "syllabus_progress": math.floor(avg_progress + 0.5),
            },
            "upcoming_exams": [exam_json(e, today) for e in upcoming_exams],
            "todays_routines": [routine_json(r) for r in todays_routines],
            "recent_sessions": [session_json(s) for s in recent_sessions],
        }
    ), 200
