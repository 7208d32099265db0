import atexit

from flask import Flask, jsonify
from dotenv import load_dotenv

from .routes import register_blueprints
from .extensions import db, bcrypt, migrate
from .services import TimerRegistry
from .utils import make_csrf_token

load_dotenv()


def create_app(config_class="studyhub.config.ProdConfig"):
    """
    Application factory function for creating and configuring the Flask app.
    This pattern allows flexible configuration and easier testing.
    """
    # Create the Flask application instance
    app = Flask(__name__)
    # Load configuration from the given config class
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize Flask extensions with the app
    db.init_app(app)
    bcrypt.init_app(app)
    migrate.init_app(app, db)

    # One live study timer per user; stop every ticker when the process exits
    timers = TimerRegistry(app)
    atexit.register(timers.shutdown)

    # Register a CSRF token generator to run before each request
    app.before_request(make_csrf_token)

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(error):
        # Roll back the database session to avoid invalid states
        db.session.rollback()
        return jsonify({"error": "Internal server error"}), 500

    # Register all application blueprints (routes)
    register_blueprints(app)

    # Optionally create all database tables if CREATE_DB is set in config
    if app.config.get("CREATE_DB"):
        with app.app_context():
            db.create_all()

    # For SQLite: ensure foreign key constraints are enforced
    if (app.config.get("SQLALCHEMY_DATABASE_URI") or "").startswith("sqlite"):
        with app.app_context():
            with db.engine.connect() as connection:
                connection.execute(db.text("PRAGMA foreign_keys=ON"))

    return app
