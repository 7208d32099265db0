# Standard library imports
from functools import wraps
from datetime import datetime, date, time as dtime, timezone
import secrets

from flask import session, request, jsonify, current_app
from dateutil import parser

# Application-specific imports
from .models import User  # Import the User model for authentication


def str_to_bool(val):
    """
    Convert a string or boolean value to a boolean.

    Args:
        val (str | bool): The value to convert.

    Returns:
        bool: The boolean representation of the input value.
    """
    if isinstance(val, bool):
        return val
    if isinstance(val, str):
        return val.lower() in ("true", "1", "yes", "on")
    return False


def login_required(f):
    """
    Decorator to ensure a user is logged in and exists in the database.

    - Returns a 401 JSON error if not logged in or the user vanished.
    - Passes the fetched user object as the first argument to the decorated view.

    Args:
        f (function): The view function to wrap.

    Returns:
        function: The decorated function.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        username = session.get("username")
        if not username:
            return jsonify({"error": "Unauthorized: Not logged in"}), 401

        user = User.query.filter_by(username=username).first()
        if not user:
            # Handle case where user is in session but not in DB
            session.pop("username", None)
            return jsonify({"error": "Unauthorized: User not found"}), 401

        # Pass the fetched user object to the route function
        return f(user, *args, **kwargs)

    return decorated_function


def csrf_protect(f):
    """
    Decorator to protect a route from CSRF attacks.

    - Checks for a valid CSRF token in the session and request (form or header).
    - Skips check if app is in TESTING mode.
    - Returns 400 error if token is missing or invalid.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_app.config.get("TESTING"):
            return f(*args, **kwargs)

        # Only check for state-changing methods
        if request.method in ["POST", "PUT", "PATCH", "DELETE"]:
            token = session.get("csrf_token")
            if not token:
                return jsonify({"error": "CSRF token missing from session"}), 400

            # Get token from form or from header (for AJAX)
            request_token = request.form.get("csrf_token") or request.headers.get(
                "X-CSRF-Token"
            )

            if not request_token:
                return jsonify({"error": "CSRF token missing from request"}), 400

            if not secrets.compare_digest(token, request_token):
                return jsonify({"error": "Invalid CSRF token"}), 400

        return f(*args, **kwargs)

    return decorated_function


def csrf_token():
    """Return the session's CSRF token, creating it on first use."""
    if "csrf_token" not in session:
        session["csrf_token"] = secrets.token_hex(16)
    return session["csrf_token"]


def make_csrf_token():
    """
    Generates and stores a CSRF token in the session if not already present.
    Skips token generation in TESTING mode.
    """
    if current_app.config.get("TESTING"):
        return
    csrf_token()


def json_payload():
    """Return the request's JSON object body, or None if it is not a JSON object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def to_iso(dt) -> str:
    """
    Return an ISO string in UTC (with Z) from a datetime or None.

    Naive datetimes (SQLite drops tzinfo) are taken to be UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def parse_date(value) -> date:
    """
    Parse a date from an ISO string (``2025-06-01``), a full datetime string
    or a date/datetime object.

    Raises:
        ValueError: If the value cannot be read as a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError("date is required")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        # Fallback to dateutil.parser for more lenient parsing
        try:
            return parser.parse(value).date()
        except (ValueError, OverflowError):
            raise ValueError(f"Invalid date: {value}") from None


def parse_hhmm(value) -> str:
    """
    Normalise a clock time to ``HH:MM``.

    Accepts ``H:MM``, ``HH:MM`` and ``HH:MM:SS`` (seconds are dropped).

    Raises:
        ValueError: If the value is not a valid time of day.
    """
    if not isinstance(value, str):
        raise ValueError("time must be a string in HH:MM format")
    try:
        parsed = dtime.fromisoformat(value.strip().zfill(5))
    except ValueError:
        raise ValueError(f"Invalid time: {value}") from None
    return parsed.strftime("%H:%M")
