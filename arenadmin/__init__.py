"""Initialize the Flask app and its extensions."""

import atexit
import json
import os

import firebase_admin
from firebase_admin import credentials
from flask import Flask

from .constants import (
    LIVE_DURATION_MINUTES,
    SWEEP_INTERVAL_SECONDS,
    SWEEP_TIMEOUT_SECONDS,
)
from .extensions import csrf


def _env_flag(name, default="false"):
    return (os.environ.get(name) or default).lower() in ["true", "1", "t"]


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from env, a local file, or ADC."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
            project_id = os.environ.get("FIREBASE_PROJECT_ID")
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        try:
            options = {"projectId": project_id} if project_id else None
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            # This can happen if the app is already initialized, which is fine.
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        TOURNAMENT_SWEEP_INTERVAL_SECONDS=float(
            os.environ.get("TOURNAMENT_SWEEP_INTERVAL_SECONDS") or SWEEP_INTERVAL_SECONDS
        ),
        TOURNAMENT_LIVE_DURATION_MINUTES=float(
            os.environ.get("TOURNAMENT_LIVE_DURATION_MINUTES") or LIVE_DURATION_MINUTES
        ),
        TOURNAMENT_SWEEP_TIMEOUT_SECONDS=float(
            os.environ.get("TOURNAMENT_SWEEP_TIMEOUT_SECONDS") or SWEEP_TIMEOUT_SECONDS
        ),
        TOURNAMENT_SCHEDULER_ENABLED=_env_flag("TOURNAMENT_SCHEDULER_ENABLED"),
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    # Initialize extensions
    csrf.init_app(app)

    # Register blueprints
    from . import main as main_bp

    app.register_blueprint(main_bp.bp)

    from . import tournament as tournament_bp

    app.register_blueprint(tournament_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    from .tournament.cli import register_commands

    register_commands(app)

    if app.config.get("TOURNAMENT_SCHEDULER_ENABLED"):
        from .tournament.tasks import StatusCheckRunner

        runner = StatusCheckRunner(app)
        app.extensions["tournament_status_runner"] = runner
        runner.start()
        atexit.register(runner.stop)

    return app
