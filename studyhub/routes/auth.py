# Import Flask modules for routing, sessions, and JSON responses
from flask import Blueprint, request, session, jsonify, current_app
# Import extensions for database and password hashing
from ..extensions import db, bcrypt
# Import models for user and settings management
from ..models import User, Settings
# Import utility decorators for CSRF protection and login checks
from ..utils import csrf_protect, csrf_token, login_required
from ..consts import DEFAULT_SETTINGS
from ..services import current_timers
import re

# Define the authentication blueprint for all auth-related routes
auth_bp = Blueprint("auth", __name__)


def _form():
    """Accept both JSON bodies and classic form posts."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else request.form


@auth_bp.route("/csrf", methods=["GET"])
def csrf():
    """
    Hand out the session's CSRF token.

    Clients send it back on every write request in the X-CSRF-Token header
    (or as a csrf_token form field).
    """
    return jsonify({"csrf_token": csrf_token()}), 200


@auth_bp.route("/register", methods=["POST"])
@csrf_protect
def register():
    """
    Register route: Handles new user sign-up.

    Creates a new User record with a hashed password and the default timer
    Settings, then logs the user in.

    Returns:
        JSON: The new user (201), or an error (400 / 409).
    """
    form = _form()
    username = (form.get("username") or "").strip()
    password = form.get("password") or ""
    confirm_password = form.get("confirm_password") or ""
    email = (form.get("email") or "").strip()

    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400

    # Check if passwords match
    if password != confirm_password:
        return jsonify({"error": "Passwords do not match"}), 400

    # Validate email format
    if not re.match(r"[^@]+@[^@]+\.[^@]+", email):
        return jsonify({"error": "Invalid email address"}), 400

    # Check if username or email is already taken
    if User.query.filter_by(username=username).first():
        return jsonify({"error": "Username already taken"}), 409
    if User.query.filter_by(email=email).first():
        return jsonify({"error": "Email already registered"}), 409

    # Hash password and create new user
    hashed_password = bcrypt.generate_password_hash(password).decode("utf-8")
    new_user = User(username=username, password=hashed_password, email=email)
    db.session.add(new_user)
    db.session.flush()  # Flush to get new_user.id

    # Create default timer settings for the new user
    db.session.add(
        Settings(
            user_id=new_user.id,
            study_minutes=DEFAULT_SETTINGS["study_minutes"],
            break_minutes=DEFAULT_SETTINGS["break_minutes"],
            long_break_minutes=DEFAULT_SETTINGS["long_break_minutes"],
            sessions_until_long_break=DEFAULT_SETTINGS["sessions_until_long_break"],
            notifications_enabled=DEFAULT_SETTINGS["notifications_enabled"],
        )
    )
    db.session.commit()
    current_app.logger.info("Registered user %s", username)

    session["username"] = username
    return jsonify({"id": new_user.id, "username": username, "email": email}), 201


@auth_bp.route("/login", methods=["POST"])
@csrf_protect
def login():
    """
    Login route: Authenticates user credentials using bcrypt and stores the
    username in the session.

    Returns:
        JSON: The user (200) or an error (401).
    """
    form = _form()
    username = form.get("username") or ""
    password = form.get("password") or ""
    user = User.query.filter_by(username=username).first()

    # Check if user exists and password hash matches
    if user and bcrypt.check_password_hash(user.password, password):
        session["username"] = username
        return jsonify({"id": user.id, "username": user.username}), 200
    return jsonify({"error": "Invalid credentials"}), 401


@auth_bp.route("/logout", methods=["POST"])
@csrf_protect
@login_required
def logout(user):
    """
    Logout route: Clears the user session and stops the user's study timer.
    """
    current_timers().discard(user.id)
    session.pop("username", None)
    return jsonify({"message": "Logged out"}), 200
