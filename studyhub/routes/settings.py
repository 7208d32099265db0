from flask import Blueprint, jsonify, current_app

from ..extensions import db
from ..models import Settings
from ..services import current_timers, settings_for
from ..timer import InvalidSettingsChange, TimerSettings
from ..utils import csrf_protect, login_required, json_payload, str_to_bool
from ..consts import DEFAULT_SETTINGS

# Define the blueprint for timer settings
settings_bp = Blueprint("settings", __name__)


def _settings_json(timer_settings, notifications_enabled):
    data = timer_settings.to_dict()
    data["notifications_enabled"] = notifications_enabled
    return data


@settings_bp.route("/", methods=["GET"])
@login_required
def get_settings(user):
    """Return the user's timer settings."""
    timer_settings, enabled = settings_for(user)
    return jsonify(_settings_json(timer_settings, enabled)), 200


@settings_bp.route("/", methods=["PUT"])
@csrf_protect
@login_required
def update_settings(user):
    """
    Update the user's timer settings.

    Durations are validated through TimerSettings. The change is rejected
    with 409 while the user's timer is running, so a countdown never
    changes length halfway through.

    Returns:
        JSON: The stored settings (200), or an error (400 / 409).
    """
    data = json_payload()
    if data is None:
        return jsonify({"error": "Invalid payload, expected a JSON object"}), 400

    current, enabled = settings_for(user)
    try:
        new_settings = TimerSettings.from_dict(data, base=current)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    if "notifications_enabled" in data:
        enabled = str_to_bool(data["notifications_enabled"])

    timers = current_timers()
    try:
        with timers.locked(user) as timer:
            timer.update_settings(new_settings)
    except InvalidSettingsChange as exc:
        return jsonify({"error": str(exc)}), 409
    timers.set_notifications_enabled(user, enabled)

    row = user.settings
    if row is None:
        row = Settings(user_id=user.id)
        db.session.add(row)
    row.study_minutes = new_settings.study_minutes
    row.break_minutes = new_settings.break_minutes
    row.long_break_minutes = new_settings.long_break_minutes
    row.sessions_until_long_break = new_settings.sessions_until_long_break
    row.notifications_enabled = enabled
    db.session.commit()
    current_app.logger.info("Updated timer settings for user %s", user.id)

    return jsonify(_settings_json(new_settings, enabled)), 200


@settings_bp.route("/defaults", methods=["GET"])
def default_settings():
    """Return the factory defaults (used by the settings form's reset button)."""
    return jsonify(DEFAULT_SETTINGS), 200
