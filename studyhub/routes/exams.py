# Import Flask modules for routing, request handling, and JSON responses
from flask import Blueprint, request, jsonify
from datetime import date, timedelta

from ..extensions import db
from ..models import Exam
from ..utils import (
    csrf_protect,
    login_required,
    json_payload,
    parse_date,
    parse_hhmm,
    str_to_bool,
    to_iso,
)
from ..consts import EXAM_MODES

# Define the blueprint for exam-related API routes
exams_bp = Blueprint("exams", __name__)


def when_label(exam_date, today=None):
    """
    Coarse label for how far away an exam is.

    Weeks start on Sunday, like the routine day numbering.

    Returns:
        str: 'past', 'today', 'tomorrow', 'this_week' or 'later'.
    """
    today = today or date.today()
    if exam_date < today:
        return "past"
    if exam_date == today:
        return "today"
    if exam_date == today + timedelta(days=1):
        return "tomorrow"
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    if exam_date < week_start + timedelta(days=7):
        return "this_week"
    return "later"


def exam_json(exam, today=None):
    return {
        "id": exam.id,
        "subject": exam.subject,
        "date": exam.date.isoformat(),
        "time": exam.time,
        "location": exam.location,
        "mode": exam.mode,
        "marks": exam.marks,
        "reminders": exam.reminders or [],
        "when": when_label(exam.date, today),
        "updated_at": to_iso(exam.updated_at),
    }


def _validate(data, partial=False):
    """
    Validate an exam payload.

    Args:
        data (dict): Request body.
        partial (bool): Only validate the keys that are present (updates).

    Returns:
        tuple: (fields dict, None) on success, (None, error message) otherwise.
    """
    fields = {}
    if not partial or "subject" in data:
        subject = data.get("subject")
        if not isinstance(subject, str) or not subject.strip():
            return None, "Subject is required"
        fields["subject"] = subject.strip()
    if not partial or "date" in data:
        try:
            fields["date"] = parse_date(data.get("date"))
        except ValueError as exc:
            return None, str(exc)
    if data.get("time"):
        try:
            fields["time"] = parse_hhmm(data["time"])
        except ValueError as exc:
            return None, str(exc)
    elif "time" in data:
        fields["time"] = None
    if "location" in data:
        location = data["location"]
        if location is not None and not isinstance(location, str):
            return None, "location must be a string"
        fields["location"] = (location or "").strip() or None
    if "mode" in data:
        if data["mode"] not in EXAM_MODES:
            return None, f"mode must be one of {', '.join(EXAM_MODES)}"
        fields["mode"] = data["mode"]
    if "marks" in data:
        marks = data["marks"]
        if marks in (None, ""):
            fields["marks"] = None
        else:
            try:
                fields["marks"] = int(marks)
            except (TypeError, ValueError):
                return None, "marks must be an integer"
            if fields["marks"] < 0:
                return None, "marks must not be negative"
    if "reminders" in data:
        if not isinstance(data["reminders"], list):
            return None, "reminders must be a list"
        fields["reminders"] = data["reminders"]
    return fields, None


@exams_bp.route("/", methods=["GET"])
@login_required
def get_exams(user):
    """
    List the user's exams ordered by date.

    Query params:
        upcoming (bool): Only exams from today on.
    """
    today = date.today()
    query = Exam.query.filter_by(user_id=user.id)
    if str_to_bool(request.args.get("upcoming", "false")):
        query = query.filter(Exam.date >= today)
    exams = query.order_by(Exam.date, Exam.time, Exam.id).all()
    return jsonify([exam_json(e, today) for e in exams]), 200


@exams_bp.route("/", methods=["POST"])
@csrf_protect
@login_required
def create_exam(user):
    data = json_payload()
    if data is None:
        return jsonify({"error": "Invalid payload, expected a JSON object"}), 400
    fields, error = _validate(data)
    if error:
        return jsonify({"error": error}), 400

    exam = Exam(user_id=user.id, **fields)
    db.session.add(exam)
    db.session.commit()
    return jsonify({"message": "Exam created", "exam": exam_json(exam)}), 201


@exams_bp.route("/<int:exam_id>", methods=["PUT"])
@csrf_protect
@login_required
def update_exam(user, exam_id):
    exam = db.session.get(Exam, exam_id)
    if not exam or exam.user_id != user.id:
        return jsonify({"message": "Exam not found or unauthorized"}), 404
    data = json_payload()
    if data is None:
        return jsonify({"error": "Invalid payload, expected a JSON object"}), 400
    fields, error = _validate(data, partial=True)
    if error:
        return jsonify({"error": error}), 400

    for key, value in fields.items():
        setattr(exam, key, value)
    db.session.commit()
    return jsonify({"message": "Exam updated", "exam": exam_json(exam)}), 200


@exams_bp.route("/<int:exam_id>", methods=["DELETE"])
@csrf_protect
@login_required
def delete_exam(user, exam_id):
    exam = db.session.get(Exam, exam_id)
    if not exam or exam.user_id != user.id:
        return jsonify({"message": "Exam not found or unauthorized"}), 404
    db.session.delete(exam)
    db.session.commit()
    return jsonify({"message": "Exam deleted"}), 200
