# Import Flask modules for routing, request handling, and JSON responses
from flask import Blueprint, request, jsonify

from ..extensions import db
from ..models import Routine
from ..utils import csrf_protect, login_required, json_payload, parse_hhmm, to_iso
from ..consts import DAY_NAMES

# Define the blueprint for routine-related API routes
routines_bp = Blueprint("routines", __name__)


def routine_json(routine):
    return {
        "id": routine.id,
        "title": routine.title,
        "description": routine.description or "",
        "day_of_week": routine.day_of_week,
        "day_name": DAY_NAMES[routine.day_of_week],
        "start_time": routine.start_time,
        "end_time": routine.end_time,
        "updated_at": to_iso(routine.updated_at),
    }


def _validate(data):
    """
    Validate a routine payload.

    Returns:
        tuple: (fields dict, None) on success, (None, error message) otherwise.
    """
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        return None, "Title is required"
    day = data.get("day_of_week")
    # Whole numbers only; bools and floats such as 2.9 are rejected
    if isinstance(day, str) and day.strip().isdigit():
        day = int(day)
    if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
        return None, "day_of_week must be an integer between 0 and 6"
    try:
        start = parse_hhmm(data.get("start_time"))
        end = parse_hhmm(data.get("end_time"))
    except ValueError as exc:
        return None, str(exc)
    if end <= start:
        return None, "end_time must be after start_time"
    description = data.get("description") or ""
    if not isinstance(description, str):
        return None, "description must be a string"
    return {
        "title": title.strip(),
        "description": description,
        "day_of_week": day,
        "start_time": start,
        "end_time": end,
    }, None


@routines_bp.route("/", methods=["GET"])
@login_required
def get_routines(user):
    """
    List the user's routines ordered by weekday and start time.

    Query params:
        day (int): Only return routines of this weekday (0 = Sunday).
    """
    query = Routine.query.filter_by(user_id=user.id)
    day = request.args.get("day", type=int)
    if day is not None:
        query = query.filter_by(day_of_week=day)
    routines = query.order_by(Routine.day_of_week, Routine.start_time).all()
    return jsonify([routine_json(r) for r in routines]), 200


@routines_bp.route("/", methods=["POST"])
@csrf_protect
@login_required
def create_routine(user):
    data = json_payload()
    if data is None:
        return jsonify({"error": "Invalid payload, expected a JSON object"}), 400
    fields, error = _validate(data)
    if error:
        return jsonify({"error": error}), 400

    routine = Routine(user_id=user.id, **fields)
    db.session.add(routine)
    db.session.commit()
    return jsonify({"message": "Routine created", "routine": routine_json(routine)}), 201


@routines_bp.route("/<int:routine_id>", methods=["PUT"])
@csrf_protect
@login_required
def update_routine(user, routine_id):
    routine = db.session.get(Routine, routine_id)
    if not routine or routine.user_id != user.id:
        return jsonify({"message": "Routine not found or unauthorized"}), 404

    data = json_payload()
    if data is None:
        return jsonify({"error": "Invalid payload, expected a JSON object"}), 400
    fields, error = _validate(data)
    if error:
        return jsonify({"error": error}), 400

    for key, value in fields.items():
        setattr(routine, key, value)
    db.session.commit()
    return jsonify({"message": "Routine updated", "routine": routine_json(routine)}), 200


@routines_bp.route("/<int:routine_id>", methods=["DELETE"])
@csrf_protect
@login_required
def delete_routine(user, routine_id):
    routine = db.session.get(Routine, routine_id)
    if not routine or routine.user_id != user.id:
        return jsonify({"message": "Routine not found or unauthorized"}), 404
    db.session.delete(routine)
    db.session.commit()
    return jsonify({"message": "Routine deleted"}), 200
