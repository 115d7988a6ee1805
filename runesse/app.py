"""
Runesse Request Service — Flask application
Buyer requests, cardholder matching, admin console API.
"""

import logging
import os
from datetime import datetime, timezone

from dotenv import load_dotenv
from flasgger import Swagger
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from runesse.errors import RunesseError
from runesse.extensions import db, jwt
from runesse import models  # noqa: F401  (register tables)

load_dotenv()

logger = logging.getLogger(__name__)


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _email_list(value):
    if isinstance(value, str):
        value = value.split(",")
    return tuple(e.strip() for e in value if e and e.strip())


def _database_uri():
    if os.environ.get("DATABASE_URL"):
        return os.environ["DATABASE_URL"]
    return (
        f"postgresql://{os.environ.get('DB_USER', 'runesse_user')}"
        f":{os.environ.get('DB_PASS', 'password')}"
        f"@{os.environ.get('DB_HOST', 'runesse-db')}"
        f"/{os.environ.get('DB_NAME', 'runesse')}"
    )


def create_app(test_config=None):
    app = Flask(__name__)

    # Configuration
    app.config["SQLALCHEMY_DATABASE_URI"] = _database_uri()
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["JWT_SECRET_KEY"] = os.environ.get("JWT_SECRET", "dev-secret-change-me")
    app.config["ADMIN_EMAILS"] = os.environ.get("ADMIN_EMAILS", "admin@demo.runesse")
    app.config["ADMIN_DEVICE_COOKIE"] = os.environ.get("ADMIN_DEVICE_COOKIE", "runesse_admin_device")
    app.config["ADMIN_DEVICE_GUARD"] = _env_flag("ADMIN_DEVICE_GUARD", True)
    app.config["PLACEHOLDER_CARDHOLDER_EMAIL"] = os.environ.get(
        "PLACEHOLDER_CARDHOLDER_EMAIL", "cardholder@demo.runesse"
    )
    app.config["BUYER_DEMO_EMAIL"] = os.environ.get("BUYER_DEMO_EMAIL", "buyer@demo.runesse")
    app.config["SESSION_COOKIE_SECURE"] = os.environ.get("FLASK_ENV", "production") == "production"
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO")

    if test_config:
        app.config.update(test_config)

    app.config["ADMIN_EMAILS"] = _email_list(app.config["ADMIN_EMAILS"])

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize Extensions
    db.init_app(app)
    jwt.init_app(app)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({"ok": False, "error": reason}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"ok": False, "error": "Token has expired"}), 401

    Swagger(app)

    # Register Blueprints
    from runesse.routes.requests import requests_bp
    app.register_blueprint(requests_bp, url_prefix="/api/requests")

    from runesse.routes.buyer import buyer_bp
    app.register_blueprint(buyer_bp, url_prefix="/api/buyer")

    from runesse.routes.cardholder import cardholder_bp
    app.register_blueprint(cardholder_bp, url_prefix="/api/cardholder")

    from runesse.routes.admin import admin_bp
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    # --- Error handlers -------------------------------------------------
    @app.errorhandler(RunesseError)
    def handle_service_error(err):
        if err.status_code >= 500:
            logger.error("Request failed: %s", err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return jsonify({"ok": False, "error": err.description}), err.code

    # --- Health check ---------------------------------------------------
    @app.route("/health")
    def health():
        try:
            db.session.execute(db.text("SELECT 1"))
        except Exception as e:
            logger.warning("Health check failed: %s", e)
            return jsonify({"service": "runesse", "status": "unhealthy"}), 503
        return jsonify({
            "service": "runesse",
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 200

    return app


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
