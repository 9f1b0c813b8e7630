# fitcoach/controllers/checkin_controller.py
from flask import jsonify
from flask_jwt_extended import jwt_required

from fitcoach.adherence import submit_checkin
from fitcoach.helpers import current_user_id, int_arg, json_body
from fitcoach.models import WeeklyCheckin


@jwt_required()
def submit_weekly_checkin():
    user_id = current_user_id()
    data = json_body()

    outcome = submit_checkin(
        user_id,
        workout_adherence=data.get("workoutAdherence"),
        meal_adherence=data.get("mealAdherence"),
        budget_adherence=data.get("budgetAdherence"),
        primary_reason=data.get("primaryReason"),
        notes=data.get("notes"),
    )

    body = {"success": True}
    body.update(outcome.to_dict())
    return jsonify(body), 201


@jwt_required()
def list_checkins():
    user_id = current_user_id()
    limit = int_arg("limit", 4, 1, 52)

    rows = (
        WeeklyCheckin.query.filter_by(user_id=user_id)
        .order_by(WeeklyCheckin.created_at.desc())
        .limit(limit)
        .all()
    )
    return jsonify({"success": True, "checkins": [row.to_dict() for row in rows]}), 200
