# fitcoach/routes/deviation_routes.py
from flask import Blueprint
from fitcoach.controllers import deviation_controller

deviation_bp = Blueprint("deviations", __name__, url_prefix="/api/v1/deviations")

deviation_bp.route("", methods=["POST"])(deviation_controller.log_deviation)
deviation_bp.route("", methods=["GET"])(deviation_controller.list_deviations)
