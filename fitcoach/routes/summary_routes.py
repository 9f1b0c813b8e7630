# fitcoach/routes/summary_routes.py
from flask import Blueprint
from fitcoach.controllers import summary_controller

summary_bp = Blueprint("summary", __name__, url_prefix="/api/v1")

summary_bp.route("/home/summary", methods=["GET"])(summary_controller.get_home_summary)
summary_bp.route("/adjustments", methods=["GET"])(summary_controller.list_adjustments)
