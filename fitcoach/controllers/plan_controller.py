# fitcoach/controllers/plan_controller.py
from flask import jsonify
from flask_jwt_extended import jwt_required

from fitcoach.adherence import request_regeneration
from fitcoach.helpers import current_user_id


@jwt_required()
def regenerate_plan():
    user_id = current_user_id()
    result = request_regeneration(user_id)

    body = {"success": True, "message": "Plan regeneration requested"}
    body.update(result)
    return jsonify(body), 201
