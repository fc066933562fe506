"""Initialize the Flask app and its extensions."""

import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask, current_app, g, session
from werkzeug.middleware.proxy_fix import ProxyFix

from .auth.models import UserSession
from .constants import USERS
from .extensions import csrf, mail


def _env_flag(name, default="false"):
    return (os.environ.get(name) or default).lower() in ["true", "1", "t"]


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(
        __name__,
        instance_relative_config=True,
        static_folder="static",
        static_url_path="/static",
    )

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        MAIL_SERVER=os.environ.get("MAIL_SERVER") or "smtp.gmail.com",
        MAIL_PORT=int(os.environ.get("MAIL_PORT") or 587),
        MAIL_USE_TLS=_env_flag("MAIL_USE_TLS", "true"),
        MAIL_USE_SSL=_env_flag("MAIL_USE_SSL"),
        MAIL_USERNAME=os.environ.get("MAIL_USERNAME"),
        MAIL_PASSWORD=os.environ.get("MAIL_PASSWORD"),
        MAIL_DEFAULT_SENDER=os.environ.get("MAIL_DEFAULT_SENDER")
        or "noreply@khelkheleko.com",
        FIREBASE_API_KEY=os.environ.get("FIREBASE_API_KEY"),
        # Development login that bypasses the identity provider
        ENABLE_MOCK_LOGIN=_env_flag("ENABLE_MOCK_LOGIN"),
        MOCK_ADMIN_EMAIL=os.environ.get("MOCK_ADMIN_EMAIL") or "adminsabin@gmail.com",
        MOCK_ADMIN_PASSWORD=os.environ.get("MOCK_ADMIN_PASSWORD"),
        ADMIN_EMAILS=[
            e.strip().lower()
            for e in (os.environ.get("ADMIN_EMAILS") or "").split(",")
            if e.strip()
        ],
        # eSewa ePay v2, test merchant by default
        ESEWA_MERCHANT_CODE=os.environ.get("ESEWA_MERCHANT_CODE") or "EPAYTEST",
        ESEWA_SECRET_KEY=os.environ.get("ESEWA_SECRET_KEY") or "8gBm/:&EnhH.1/q",
        ESEWA_FORM_URL=os.environ.get("ESEWA_FORM_URL")
        or "https://rc-epay.esewa.com.np/api/epay/main/v2/form",
        ESEWA_STATUS_URL=os.environ.get("ESEWA_STATUS_URL")
        or "https://rc.esewa.com.np/api/epay/transaction/status/",
        ESEWA_SIMULATE=_env_flag("ESEWA_SIMULATE", "true"),
        ESEWA_SIMULATION_DELAY=int(os.environ.get("ESEWA_SIMULATION_DELAY") or 3),
        ESEWA_VERIFY_STATUS=_env_flag("ESEWA_VERIFY_STATUS"),
        ESEWA_STATUS_RETRY_DELAY=int(os.environ.get("ESEWA_STATUS_RETRY_DELAY") or 5),
        PLATFORM_COMMISSION_RATE=float(
            os.environ.get("PLATFORM_COMMISSION_RATE") or 3
        ),
        GEOCODER_URL=os.environ.get("GEOCODER_URL")
        or "https://nominatim.openstreetmap.org",
        GEOCODER_TIMEOUT=float(os.environ.get("GEOCODER_TIMEOUT") or 10),
        ENABLE_DEMO_SEED=_env_flag("ENABLE_DEMO_SEED"),
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    # Ensure the instance folder exists
    try:
        os.makedirs(app.instance_path)
    except OSError:
        pass

    # Initialize extensions
    mail.init_app(app)
    csrf.init_app(app)

    # Register blueprints
    from . import main as main_bp

    app.register_blueprint(main_bp.bp)

    from . import auth as auth_bp

    app.register_blueprint(auth_bp.bp)

    from . import notification as notification_bp

    app.register_blueprint(notification_bp.bp)

    from . import tournament as tournament_bp

    app.register_blueprint(tournament_bp.bp)

    from . import registration as registration_bp

    app.register_blueprint(registration_bp.bp)

    from . import payment as payment_bp

    app.register_blueprint(payment_bp.bp)

    from . import player as player_bp

    app.register_blueprint(player_bp.bp)

    from . import organizer as organizer_bp

    app.register_blueprint(organizer_bp.bp)

    from . import admin as admin_bp

    app.register_blueprint(admin_bp.bp)

    from . import discovery as discovery_bp

    app.register_blueprint(discovery_bp.bp)

    from . import fees as fees_bp

    app.register_blueprint(fees_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    # Top-level aliases for the auth pages
    app.add_url_rule("/login", endpoint="auth.login", methods=["GET", "POST"])
    app.add_url_rule("/register", endpoint="auth.register", methods=["GET", "POST"])

    @app.before_request
    def load_logged_in_user():
        """If a user_id is in the session, load the user data from Firestore and store it in g."""
        user_id = session.get("user_id")
        g.user = None
        if user_id is None:
            return

        try:
            db = firestore.client()
            user_doc = db.collection(USERS).document(user_id).get()
            if user_doc.exists:
                g.user = UserSession({**(user_doc.to_dict() or {}), "uid": user_id})
            else:
                session.clear()
                current_app.logger.warning(
                    f"User {user_id} in session but not found in Firestore."
                )
        except Exception as e:
            current_app.logger.error(f"Error loading user from session: {e}")
            session.clear()

    from .context_processors import inject_global_context, inject_notifications

    app.context_processor(inject_global_context)
    app.context_processor(inject_notifications)

    from .utils import format_npr

    app.jinja_env.filters["npr"] = format_npr

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from env, a local file, or ADC."""
    import json

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
            storage_bucket = os.environ.get("FIREBASE_STORAGE_BUCKET")
            if not storage_bucket and project_id:
                storage_bucket = f"{project_id}.firebasestorage.app"

            firebase_options = {"storageBucket": storage_bucket}
            if project_id:
                firebase_options["projectId"] = project_id

            firebase_admin.initialize_app(cred, firebase_options)
        except ValueError:
            app.logger.info("Firebase app already initialized.")
