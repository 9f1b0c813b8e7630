# fitcoach/__init__.py
import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate

from .errors import FitcoachError
from .extensions import db, user_lock

__version__ = "0.3.0"

load_dotenv()


def _env_int(name, default):
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name, default):
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_bool(name, default):
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _engine_options(uri, statement_timeout_ms):
    options = {"pool_pre_ping": True}
    if uri.startswith("postgresql"):
        options["pool_timeout"] = 10
        options["connect_args"] = {
            "connect_timeout": 5,
            "options": f"-c statement_timeout={statement_timeout_ms}",
        }
    return options


def create_app(test_config=None):
    app = Flask(__name__)

    app.config["VERSION"] = __version__
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL", "sqlite:///fitcoach.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "dev-only-secret-change-me")
    app.config["CORS_ORIGINS"] = [
        o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()
    ]
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO").upper()
    app.config["REDIS_URL"] = os.getenv("REDIS_URL")

    # adherence policy
    app.config["ADHERENCE_WINDOW_DAYS"] = _env_int("ADHERENCE_WINDOW_DAYS", 7)
    app.config["RECENT_ADJUSTMENT_HOURS"] = _env_int("RECENT_ADJUSTMENT_HOURS", 24)
    app.config["PARTIAL_RATING_WEIGHT"] = _env_float("PARTIAL_RATING_WEIGHT", 0.5)
    app.config["REGENERATION_RESETS_WINDOW"] = _env_bool("REGENERATION_RESETS_WINDOW", False)
    app.config["FREE_REGENERATION_LIMIT"] = _env_int("FREE_REGENERATION_LIMIT", 3)

    # failure handling
    app.config["STORAGE_RETRY_ATTEMPTS"] = _env_int("STORAGE_RETRY_ATTEMPTS", 3)
    app.config["STORAGE_RETRY_BACKOFF_SECS"] = _env_float("STORAGE_RETRY_BACKOFF_SECS", 0.1)
    app.config["USER_LOCK_TIMEOUT_SECS"] = _env_int("USER_LOCK_TIMEOUT_SECS", 10)
    app.config["USER_LOCK_WAIT_SECS"] = _env_int("USER_LOCK_WAIT_SECS", 5)
    app.config["DB_STATEMENT_TIMEOUT_MS"] = _env_int("DB_STATEMENT_TIMEOUT_MS", 5000)
    app.config["SIGNALS_ASYNC"] = _env_bool("SIGNALS_ASYNC", True)

    if test_config:
        app.config.update(test_config)

    app.config.setdefault(
        "SQLALCHEMY_ENGINE_OPTIONS",
        _engine_options(app.config["SQLALCHEMY_DATABASE_URI"], app.config["DB_STATEMENT_TIMEOUT_MS"]),
    )
    app.logger.setLevel(getattr(logging, app.config["LOG_LEVEL"], logging.INFO))

    db.init_app(app)
    Migrate(app, db)
    user_lock.init_app(app)
    jwt = JWTManager(app)

    CORS(app,
         origins=app.config["CORS_ORIGINS"],
         supports_credentials=True,
         methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization", "X-Requested-With"])

    @app.errorhandler(FitcoachError)
    def handle_domain_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_error(e):
        from werkzeug.exceptions import HTTPException
        if isinstance(e, HTTPException):
            return jsonify(success=False, message=e.description), e.code
        app.logger.exception("Unhandled error: %s", e)
        return jsonify(success=False, message="Internal server error"), 500

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"success": False, "message": "Token expired"}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(err_msg):
        return jsonify({"success": False, "message": f"Invalid token: {err_msg}"}), 401

    @jwt.unauthorized_loader
    def missing_token_callback(err_msg):
        return jsonify({"success": False, "message": f"Missing token: {err_msg}"}), 401

    from . import models  # noqa: F401  registers tables for create_all / migrations
    from .routes.checkin_routes import checkin_bp
    from .routes.constraints_routes import constraints_bp
    from .routes.deviation_routes import deviation_bp
    from .routes.health_routes import health_bp
    from .routes.plan_routes import plan_bp
    from .routes.summary_routes import summary_bp

    app.register_blueprint(deviation_bp)
    app.register_blueprint(checkin_bp)
    app.register_blueprint(constraints_bp)
    app.register_blueprint(summary_bp)
    app.register_blueprint(plan_bp)
    app.register_blueprint(health_bp)

    return app
