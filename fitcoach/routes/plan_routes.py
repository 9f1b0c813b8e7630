# fitcoach/routes/plan_routes.py
from flask import Blueprint
from fitcoach.controllers import plan_controller, signal_controller

plan_bp = Blueprint("plans", __name__, url_prefix="/api/v1")

plan_bp.route("/plans/regenerate", methods=["POST"])(plan_controller.regenerate_plan)
plan_bp.route("/signals", methods=["POST"])(signal_controller.log_user_signal)
