# WSGI entry point for the StudyHub Flask application.
# This file is used by WSGI servers (e.g., Gunicorn, uWSGI) to run the app in production.

from studyhub import create_app  # Import the application factory function

# Specify the configuration to use for the Flask app.
# Switch to "studyhub.config.DevConfig" for a local SQLite database.
config = "studyhub.config.ProdConfig"

# The 'application' variable is recognized by most WSGI servers as the entry point.
application = create_app(config)
