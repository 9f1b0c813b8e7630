# fitcoach/routes/health_routes.py
from flask import Blueprint
from fitcoach.controllers import health_controller

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")

health_bp.route("", methods=["GET"])(health_controller.health)
health_bp.route("/db", methods=["GET"])(health_controller.health_db)
