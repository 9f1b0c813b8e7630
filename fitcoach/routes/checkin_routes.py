# fitcoach/routes/checkin_routes.py
from flask import Blueprint
from fitcoach.controllers import checkin_controller

checkin_bp = Blueprint("checkins", __name__, url_prefix="/api/v1/checkins")

checkin_bp.route("", methods=["POST"])(checkin_controller.submit_weekly_checkin)
checkin_bp.route("", methods=["GET"])(checkin_controller.list_checkins)
