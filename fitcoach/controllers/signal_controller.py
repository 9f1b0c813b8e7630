# fitcoach/controllers/signal_controller.py
from flask import jsonify, request
from flask_jwt_extended import jwt_required

from fitcoach.helpers import current_user_id
from fitcoach.services.signal_service import record_signal
from fitcoach.utils.retry import run_in_transaction


@jwt_required()
def log_user_signal():
    user_id = current_user_id()
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        data = {}

    run_in_transaction(lambda: record_signal(user_id, data.get("signal_type"), data.get("payload")))
    return jsonify({"success": True}), 201
