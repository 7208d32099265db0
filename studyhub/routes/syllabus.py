# Import Flask modules for routing and JSON responses
from flask import Blueprint, jsonify
import math
import uuid

from ..extensions import db
from ..models import Syllabus
from ..utils import csrf_protect, login_required, json_payload, str_to_bool, to_iso

# Define the blueprint for syllabus-related API routes
syllabus_bp = Blueprint("syllabus", __name__)


def calculate_progress(topics):
    """
    Percentage of completed topics, rounded half up (0 for an empty list).

    Args:
        topics (list): Topic dicts with a "completed" flag.

    Returns:
        int: Progress between 0 and 100.
    """
    if not topics:
        return 0
    completed = sum(1 for topic in topics if topic.get("completed"))
    return math.floor(completed * 100 / len(topics) + 0.5)


def syllabus_json(syllabus):
    return {
        "id": syllabus.id,
        "course_name": syllabus.course_name,
        "topics": syllabus.topics or [],
        "progress": syllabus.progress,
        "created_at": to_iso(syllabus.created_at),
        "updated_at": to_iso(syllabus.updated_at),
    }


def _normalise_topics(raw):
    """
    Validate a topics list from a request and give every topic a unique id.

    Raises:
        ValueError: On a malformed list.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("topics must be a list")
    topics = []
    seen = set()
    for item in raw:
        if isinstance(item, str):
            item = {"name": item}
        if not isinstance(item, dict) or not isinstance(item.get("name"), str) or not item["name"].strip():
            raise ValueError("Every topic needs a name")
        topic_id = str(item.get("id") or "")
        if not topic_id or topic_id in seen:
            topic_id = uuid.uuid4().hex
        seen.add(topic_id)
        topics.append(
            {
                "id": topic_id,
                "name": item["name"].strip(),
                "completed": str_to_bool(item.get("completed", False)),
            }
        )
    return topics


def _owned(user, syllabus_id):
    syllabus = db.session.get(Syllabus, syllabus_id)
    if not syllabus or syllabus.user_id != user.id:
        return None
    return syllabus


def _store_topics(syllabus, topics):
    # Assign a new list so the JSON column is flagged as modified
    syllabus.topics = topics
    syllabus.progress = calculate_progress(topics)


@syllabus_bp.route("/", methods=["GET"])
@login_required
def get_syllabi(user):
    """List the user's syllabi, most recently changed first."""
    syllabi = (
        Syllabus.query.filter_by(user_id=user.id)
        .order_by(Syllabus.updated_at.desc(), Syllabus.id.desc())
        .all()
    )
    return jsonify([syllabus_json(s) for s in syllabi]), 200


@syllabus_bp.route("/", methods=["POST"])
@csrf_protect
@login_required
def create_syllabus(user):
    """
    Create a syllabus.

    Payload: {course_name, topics: [{name, completed?} | name, ...]}
    """
    data = json_payload()
    if data is None:
        return jsonify({"error": "Invalid payload, expected a JSON object"}), 400
    course_name = data.get("course_name")
    if not isinstance(course_name, str) or not course_name.strip():
        return jsonify({"error": "Course name is required"}), 400
    try:
        topics = _normalise_topics(data.get("topics"))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    syllabus = Syllabus(user_id=user.id, course_name=course_name.strip())
    _store_topics(syllabus, topics)
    db.session.add(syllabus)
    db.session.commit()
    return jsonify({"message": "Syllabus created", "syllabus": syllabus_json(syllabus)}), 201


@syllabus_bp.route("/<int:syllabus_id>", methods=["PUT"])
@csrf_protect
@login_required
def update_syllabus(user, syllabus_id):
    syllabus = _owned(user, syllabus_id)
    if syllabus is None:
        return jsonify({"message": "Syllabus not found or unauthorized"}), 404
    data = json_payload()
    if data is None:
        return jsonify({"error": "Invalid payload, expected a JSON object"}), 400

    if "course_name" in data:
        course_name = data["course_name"]
        if not isinstance(course_name, str) or not course_name.strip():
            return jsonify({"error": "Course name is required"}), 400
        syllabus.course_name = course_name.strip()
    if "topics" in data:
        try:
            _store_topics(syllabus, _normalise_topics(data["topics"]))
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
    db.session.commit()
    return jsonify({"message": "Syllabus updated", "syllabus": syllabus_json(syllabus)}), 200


@syllabus_bp.route("/<int:syllabus_id>", methods=["DELETE"])
@csrf_protect
@login_required
def delete_syllabus(user, syllabus_id):
    syllabus = _owned(user, syllabus_id)
    if syllabus is None:
        return jsonify({"message": "Syllabus not found or unauthorized"}), 404
    db.session.delete(syllabus)
    db.session.commit()
    return jsonify({"message": "Syllabus deleted"}), 200


@syllabus_bp.route("/<int:syllabus_id>/topics", methods=["POST"])
@csrf_protect
@login_required
def add_topic(user, syllabus_id):
    syllabus = _owned(user, syllabus_id)
    if syllabus is None:
        return jsonify({"message": "Syllabus not found or unauthorized"}), 404
    data = json_payload()
    if data is None:
        return jsonify({"error": "Invalid payload, expected a JSON object"}), 400
    try:
        (topic,) = _normalise_topics([{"name": data.get("name"), "completed": False}])
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    _store_topics(syllabus, list(syllabus.topics or []) + [topic])
    db.session.commit()
    return jsonify({"message": "Topic added", "topic": topic, "syllabus": syllabus_json(syllabus)}), 201


@syllabus_bp.route("/<int:syllabus_id>/topics/<topic_id>", methods=["PATCH"])
@csrf_protect
@login_required
def toggle_topic(user, syllabus_id, topic_id):
    """
    Flip a topic's completion flag (or set it from {"completed": bool})
    and recompute the syllabus progress.
    """
    syllabus = _owned(user, syllabus_id)
    if syllabus is None:
        return jsonify({"message": "Syllabus not found or unauthorized"}), 404
    data = json_payload() or {}

    topics = []
    found = False
    for topic in syllabus.topics or []:
        topic = dict(topic)
        if topic.get("id") == topic_id:
            found = True
            if "completed" in data:
                topic["completed"] = str_to_bool(data["completed"])
            else:
                topic["completed"] = not topic.get("completed", False)
        topics.append(topic)
    if not found:
        return jsonify({"message": "Topic not found"}), 404

    _store_topics(syllabus, topics)
    db.session.commit()
    return jsonify({"message": "Topic updated", "syllabus": syllabus_json(syllabus)}), 200


@syllabus_bp.route("/<int:syllabus_id>/topics/<topic_id>", methods=["DELETE"])
@csrf_protect
@login_required
def delete_topic(user, syllabus_id, topic_id):
    syllabus = _owned(user, syllabus_id)
    if syllabus is None:
        return jsonify({"message": "Syllabus not found or unauthorized"}), 404
    topics = [t for t in syllabus.topics or [] if t.get("id") != topic_id]
    if len(topics) == len(syllabus.topics or []):
        return jsonify({"message": "Topic not found"}), 404

    _store_topics(syllabus, topics)
    db.session.commit()
    return jsonify({"message": "Topic deleted", "syllabus": syllabus_json(syllabus)}), 200
