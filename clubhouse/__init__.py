"""Initialize the Flask app and its extensions."""

import json
import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask, current_app, g, session

from .feed.engine import FeedEngine


def _env_float(name, default):
    value = os.environ.get(name)
    return float(value) if value else default


def _env_int(name, default):
    value = os.environ.get(name)
    return int(value) if value else default


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from env or default credentials."""
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    project_id = os.environ.get("FIREBASE_PROJECT_ID")
    try:
        if cred_json:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id") or project_id
            cred = credentials.Certificate(cred_info)
        else:
            cred = credentials.ApplicationDefault()
    except (json.JSONDecodeError, ValueError) as e:
        app.logger.error(f"Could not load Firebase credentials: {e}")
        return

    if not firebase_admin._apps:
        options = {"projectId": project_id} if project_id else None
        firebase_admin.initialize_app(cred, options)


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        FEED_DEADLINE_SECONDS=_env_float("FEED_DEADLINE_SECONDS", 8.0),
        FEED_MAX_ITEMS=_env_int("FEED_MAX_ITEMS", 100),
        FEED_PROFILE_CACHE_SIZE=_env_int("FEED_PROFILE_CACHE_SIZE", 2048),
        FEED_RECORD_CACHE_SIZE=_env_int("FEED_RECORD_CACHE_SIZE", 1024),
        FEED_CACHE_TTL_SECONDS=_env_float("FEED_CACHE_TTL_SECONDS", 600.0),
        FEED_MAX_WORKERS=_env_int("FEED_MAX_WORKERS", 8),
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    # Each app owns its feed engine and caches
    FeedEngine(app)

    # Register blueprints
    from . import feed as feed_bp

    app.register_blueprint(feed_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.before_request
    def load_logged_in_user():
        """If a user_id is in the session, load the user data from Firestore and store it in g."""
        user_id = session.get("user_id")
        g.user = None
        if user_id is None:
            return

        try:
            db = firestore.client()
            user_doc = db.collection("users").document(user_id).get()
            if user_doc.exists:
                g.user = user_doc.to_dict()
                g.user["uid"] = user_id  # Ensure uid is in the user object
            else:
                # User ID in session but no user in DB. Clear the session.
                session.clear()
                current_app.logger.warning(
                    f"User {user_id} in session but not found in Firestore."
                )
        except Exception as e:
            current_app.logger.error(f"Error loading user from session: {e}")
            session.clear()  # Clear session on error to be safe

    return app
