# Import Flask modules for routing and JSON responses
from flask import Blueprint, jsonify, request

from ..models import StudySession
from ..services import current_timers
from ..timer import InvalidSettingsChange, format_duration
from ..utils import csrf_protect, login_required, json_payload, to_iso
from ..consts import RECENT_SESSIONS_LIMIT, MAX_SESSIONS_LIMIT

# Define the blueprint for study timer API routes
timer_bp = Blueprint("timer", __name__)


def session_json(study_session):
    return {
        "id": study_session.id,
        "duration": study_session.duration,
        "duration_label": format_duration(study_session.duration),
        "type": study_session.type,
        "subject": study_session.subject,
        "timestamp": to_iso(study_session.timestamp),
    }


def _control(user, action):
    """Run a timer control under the timer's lock and return its snapshot."""
    with current_timers().locked(user) as timer:
        getattr(timer, action)()
        return jsonify(timer.snapshot()), 200


@timer_bp.route("/", methods=["GET"])
@login_required
def get_timer(user):
    """
    Current timer state plus any notifications queued since the last poll.

    Returns:
        JSON: Snapshot of the timer with a "notifications" list.
    """
    timers = current_timers()
    with timers.locked(user) as timer:
        data = timer.snapshot()
    data["notifications"] = timers.drain_notifications(user)
    return jsonify(data), 200


@timer_bp.route("/start", methods=["POST"])
@csrf_protect
@login_required
def start(user):
    return _control(user, "start")


@timer_bp.route("/pause", methods=["POST"])
@csrf_protect
@login_required
def pause(user):
    """Toggle between paused and running."""
    return _control(user, "toggle_pause")


@timer_bp.route("/stop", methods=["POST"])
@csrf_protect
@login_required
def stop(user):
    return _control(user, "stop")


@timer_bp.route("/reset", methods=["POST"])
@csrf_protect
@login_required
def reset(user):
    return _control(user, "reset")


@timer_bp.route("/subject", methods=["PUT"])
@csrf_protect
@login_required
def set_subject(user):
    """
    Set the optional subject of the upcoming study phase.

    Only allowed in the study phase while the timer is stopped (409 otherwise).
    """
    data = json_payload()
    if data is None or not isinstance(data.get("subject", ""), str):
        return jsonify({"error": "Invalid payload, expected {\"subject\": string}"}), 400

    with current_timers().locked(user) as timer:
        try:
            timer.set_subject(data.get("subject", ""))
        except InvalidSettingsChange as exc:
            return jsonify({"error": str(exc)}), 409
        return jsonify(timer.snapshot()), 200


@timer_bp.route("/sessions", methods=["GET"])
@login_required
def recent_sessions(user):
    """
    The user's most recent study sessions, newest first.

    Query params:
        limit (int): Number of sessions (default 10, at most 100).
    """
    limit = request.args.get("limit", RECENT_SESSIONS_LIMIT, type=int)
    limit = max(1, min(limit, MAX_SESSIONS_LIMIT))
    sessions = (
        StudySession.query.filter_by(user_id=user.id)
        .order_by(StudySession.timestamp.desc(), StudySession.id.desc())
        .limit(limit)
        .all()
    )
    return jsonify([session_json(s) for s in sessions]), 200
