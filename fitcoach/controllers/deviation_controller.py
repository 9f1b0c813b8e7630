# fitcoach/controllers/deviation_controller.py
from datetime import timedelta

from flask import jsonify
from flask_jwt_extended import jwt_required

from fitcoach.adherence import record_deviation
from fitcoach.helpers import current_user_id, int_arg, json_body
from fitcoach.models import DeviationEvent
from fitcoach.utils import clock

MAX_HISTORY_DAYS = 90


@jwt_required()
def log_deviation():
    user_id = current_user_id()
    data = json_body()

    outcome = record_deviation(
        user_id,
        deviation_type=data.get("deviationType"),
        reason=data.get("reason"),
        related_workout_id=data.get("relatedWorkoutId"),
        related_meal_id=data.get("relatedMealId"),
        notes=data.get("notes"),
        impact={
            "calories": data.get("impactCalories"),
            "protein": data.get("impactProtein"),
            "budget": data.get("impactBudget"),
        },
        client_request_id=data.get("clientRequestId"),
    )

    body = {"success": True}
    body.update(outcome.to_dict())
    return jsonify(body), (200 if outcome.replayed else 201)


@jwt_required()
def list_deviations():
    user_id = current_user_id()
    days = int_arg("days", 7, 1, MAX_HISTORY_DAYS)
    since = clock.utcnow() - timedelta(days=days)

    rows = (
        DeviationEvent.query
        .filter(DeviationEvent.user_id == user_id, DeviationEvent.created_at >= since)
        .order_by(DeviationEvent.created_at.desc())
        .all()
    )
    return jsonify({
        "success": True,
        "days": days,
        "deviations": [row.to_dict() for row in rows],
    }), 200
