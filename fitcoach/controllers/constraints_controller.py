# fitcoach/controllers/constraints_controller.py
from flask import current_app, jsonify
from flask_jwt_extended import jwt_required

from fitcoach.adherence import get_constraints, update_constraints
from fitcoach.helpers import current_user_id, json_body
from fitcoach.utils.retry import run_in_transaction


@jwt_required()
def get_user_constraints():
    user_id = current_user_id()
    return jsonify({"success": True, "constraints": get_constraints(user_id).to_dict()}), 200


@jwt_required()
def update_user_constraints():
    user_id = current_user_id()
    data = json_body()

    constraints = run_in_transaction(lambda: update_constraints(user_id, data))
    current_app.logger.info("Constraints updated for user_id=%s: %s", user_id, sorted(data))
    return jsonify({
        "success": True,
        "message": "Constraints updated",
        "constraints": constraints.to_dict(),
    }), 200
