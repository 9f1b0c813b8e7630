# fitcoach/routes/constraints_routes.py
from flask import Blueprint
from fitcoach.controllers import constraints_controller

constraints_bp = Blueprint("constraints", __name__, url_prefix="/api/v1/constraints")

constraints_bp.route("", methods=["GET"])(constraints_controller.get_user_constraints)
constraints_bp.route("", methods=["PUT", "PATCH"])(constraints_controller.update_user_constraints)
