"""
API gateway: combines the auth, events and admin blueprints.
This is the local entrypoint for development.
"""

import os
import time
import logging
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS
from dotenv import load_dotenv

from backend.common.errors import register_error_handlers
from backend.database.repositories import EXTENSION_KEY, Repositories, postgres_repositories

load_dotenv()

# Basic console logging during API requests
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="[%(levelname)s] %(asctime)s - %(message)s",
)

STARTED_AT = time.monotonic()


def cors_origins():
    """`CORS_ORIGIN` as "*" or a list of origins."""
    raw = os.getenv("CORS_ORIGIN", "*").strip()
    if raw == "*":
        return "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app(repositories: Optional[Repositories] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        repositories: storage to serve from; defaults to PostgreSQL.

    Returns:
        Flask: The configured Flask application.
    """
    app = Flask(__name__)

    origins = cors_origins()
    CORS(app, resources={
        r"/*": {
            "origins": origins,
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "expose_headers": ["Content-Type", "Authorization"],
            "supports_credentials": origins != "*",
        }
    })

    app.extensions[EXTENSION_KEY] = repositories or postgres_repositories()
    register_error_handlers(app)

    # --- REGISTER BLUEPRINTS ---
    from backend.auth_service.routes import auth_bp
    from backend.events_service.routes import events_bp
    from backend.admin_service.routes import admin_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(events_bp, url_prefix="/events")
    app.register_blueprint(admin_bp, url_prefix="/admin")

    logging.info("All blueprints registered successfully.")

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"status": "gateway_ok"}), 200

    @app.route("/health")
    def health():
        """
        Liveness probe. Unauthenticated and does not touch the database.
        """
        return jsonify({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - STARTED_AT, 3),
        }), 200

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.getenv("GATEWAY_PORT", 5050))
    app.run(host="0.0.0.0", port=port, debug=os.getenv("FLASK_DEBUG") == "1")
