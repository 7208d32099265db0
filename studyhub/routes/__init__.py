from .auth import auth_bp           # Authentication routes (register, login, logout)
from .settings import settings_bp   # Timer settings API
from .timer import timer_bp         # Study timer API
from .routines import routines_bp   # Weekly routine API
from .syllabus import syllabus_bp   # Syllabus / topic tracker API
from .notes import notes_bp         # Notes API
from .exams import exams_bp         # Exams API
from .main import main_bp           # Dashboard and health routes


def register_blueprints(app):
    """
    Register all Flask blueprints with their respective URL prefixes.

    Args:
        app (Flask): The Flask application instance.
    """
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(settings_bp, url_prefix="/api/settings")
    app.register_blueprint(timer_bp, url_prefix="/api/timer")
    app.register_blueprint(routines_bp, url_prefix="/api/routines")
    app.register_blueprint(syllabus_bp, url_prefix="/api/syllabus")
    app.register_blueprint(notes_bp, url_prefix="/api/notes")
    app.register_blueprint(exams_bp, url_prefix="/api/exams")
    app.register_blueprint(main_bp)
