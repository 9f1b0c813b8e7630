# fitcoach/controllers/health_controller.py
from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fitcoach.extensions import db, user_lock
from fitcoach.helpers import api_response


def health():
    return api_response(True, "OK", {"version": current_app.config.get("VERSION")})


def health_db():
    try:
        db.session.execute(text("SELECT 1"))
        return api_response(
            True,
            "Database connection successful",
            {"status": "connected", "distributedLocks": user_lock.distributed},
        )
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Database health check failed: %s", e)
        return api_response(False, "Database connection failed", {"status": "unavailable"}, status_code=500)
