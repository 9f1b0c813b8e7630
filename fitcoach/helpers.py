# fitcoach/helpers.py
from flask import request
from flask_jwt_extended import get_jwt_identity

from fitcoach.errors import Unauthenticated, ValidationError
from fitcoach.extensions import db
from fitcoach.models import User


def api_response(success, message, data=None, status_code=200):
    body = {"success": success, "message": message}
    if data:
        body.update(data)
    return body, status_code


def current_user_id() -> int:
    """Resolve the JWT identity to a known user id, or raise Unauthenticated."""
    identity = get_jwt_identity()
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid user ID format in token")

    if db.session.get(User, user_id) is None:
        raise Unauthenticated("User not found")
    return user_id


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def int_arg(name, default, low, high) -> int:
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", fields=[name])
    if not low <= value <= high:
        raise ValidationError(f"{name} must be between {low} and {high}", fields=[name])
    return value
