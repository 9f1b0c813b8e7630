# fitcoach/controllers/summary_controller.py
from flask import jsonify
from flask_jwt_extended import jwt_required

from fitcoach.adherence import project
from fitcoach.helpers import current_user_id, int_arg
from fitcoach.models import AdjustmentHistory


@jwt_required()
def get_home_summary():
    user_id = current_user_id()
    summary = project(user_id)
    summary["success"] = True
    return jsonify(summary), 200


@jwt_required()
def list_adjustments():
    user_id = current_user_id()
    limit = int_arg("limit", 10, 1, 50)

    rows = (
        AdjustmentHistory.query.filter_by(user_id=user_id)
        .order_by(AdjustmentHistory.created_at.desc())
        .limit(limit)
        .all()
    )
    return jsonify({"success": True, "adjustments": [row.to_dict() for row in rows]}), 200
