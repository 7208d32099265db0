# Import Flask modules for routing, request handling, and JSON responses
from flask import Blueprint, request, jsonify

from ..extensions import db
from ..models import Note
from ..utils import csrf_protect, login_required, json_payload, to_iso

# Define the blueprint for note-related API routes
notes_bp = Blueprint("notes", __name__)


def note_json(note):
    return {
        "id": note.id,
        "title": note.title,
        "content": note.content or "",
        "tags": note.tags or [],
        "created_at": to_iso(note.created_at),
        "updated_at": to_iso(note.updated_at),
    }


def clean_tags(raw):
    """
    Trim tags, drop empty ones and duplicates while keeping their order.

    Raises:
        ValueError: If ``raw`` is not a list of strings.
    """
    if raw is None:
        return []
    if not isinstance(raw, list) or not all(isinstance(t, str) for t in raw):
        raise ValueError("tags must be a list of strings")
    tags = []
    for tag in raw:
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def matches(note, search_term=None, tag=None):
    """Case-insensitive search over title and content, plus exact tag match."""
    if search_term:
        needle = search_term.lower()
        if needle not in (note.title or "").lower() and needle not in (note.content or "").lower():
            return False
    if tag and tag not in (note.tags or []):
        return False
    return True


@notes_bp.route("/", methods=["GET"])
@login_required
def get_notes(user):
    """
    List the user's notes, most recently changed first.

    Query params:
        q (str): Search term matched against title and content.
        tag (str): Only notes carrying this tag.
    """
    notes = (
        Note.query.filter_by(user_id=user.id)
        .order_by(Note.updated_at.desc(), Note.id.desc())
        .all()
    )
    search_term = request.args.get("q", "").strip()
    tag = request.args.get("tag", "").strip()
    return jsonify([note_json(n) for n in notes if matches(n, search_term, tag)]), 200


@notes_bp.route("/tags", methods=["GET"])
@login_required
def get_tags(user):
    """All distinct tags the user has used, sorted alphabetically."""
    tags = set()
    for note in Note.query.filter_by(user_id=user.id).all():
        tags.update(note.tags or [])
    return jsonify(sorted(tags)), 200


@notes_bp.route("/", methods=["POST"])
@csrf_protect
@login_required
def create_note(user):
    data = json_payload()
    if data is None:
        return jsonify({"error": "Invalid payload, expected a JSON object"}), 400
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        return jsonify({"error": "Title is required"}), 400
    content = data.get("content") or ""
    if not isinstance(content, str):
        return jsonify({"error": "content must be a string"}), 400
    try:
        tags = clean_tags(data.get("tags"))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    note = Note(user_id=user.id, title=title.strip(), content=content, tags=tags)
    db.session.add(note)
    db.session.commit()
    return jsonify({"message": "Note created", "note": note_json(note)}), 201


@notes_bp.route("/<int:note_id>", methods=["PUT"])
@csrf_protect
@login_required
def update_note(user, note_id):
    note = db.session.get(Note, note_id)
    if not note or note.user_id != user.id:
        return jsonify({"message": "Note not found or unauthorized"}), 404
    data = json_payload()
    if data is None:
        return jsonify({"error": "Invalid payload, expected a JSON object"}), 400

    if "title" in data:
        if not isinstance(data["title"], str) or not data["title"].strip():
            return jsonify({"error": "Title is required"}), 400
        note.title = data["title"].strip()
    if "content" in data:
        if not isinstance(data["content"], str):
            return jsonify({"error": "content must be a string"}), 400
        note.content = data["content"]
    if "tags" in data:
        try:
            note.tags = clean_tags(data["tags"])
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
    db.session.commit()
    return jsonify({"message": "Note updated", "note": note_json(note)}), 200


@notes_bp.route("/<int:note_id>", methods=["DELETE"])
@csrf_protect
@login_required
def delete_note(user, note_id):
    note = db.session.get(Note, note_id)
    if not note or note.user_id != user.id:
        return jsonify({"message": "Note not found or unauthorized"}), 404
    db.session.delete(note)
    db.session.commit()
    return jsonify({"message": "Note deleted"}), 200
