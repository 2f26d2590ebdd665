"""
Location Routes - the user's shopping location and store availability for it
"""

from flask import Blueprint
from flask_login import current_user, login_required

from wishwatch.api_responses import get_json_body, handle_api_errors, success_response
from wishwatch.services.availability import AvailabilityService

location_bp = Blueprint("location", __name__, url_prefix="/api")


@location_bp.route("/users/location", methods=["GET"])
@login_required
@handle_api_errors
def get_user_location():
    return success_response(data=AvailabilityService.get_location(current_user.id).to_dict())


@location_bp.route("/users/location", methods=["POST"])
@login_required
@handle_api_errors
def set_user_location():
    location = AvailabilityService.set_location(current_user.id, get_json_body())
    return success_response(data=location.to_dict(), message="Location saved")


@location_bp.route("/users/location", methods=["DELETE"])
@login_required
@handle_api_errors
def delete_user_location():
    deleted = AvailabilityService.delete_location(current_user.id)
    return success_response(data={"deleted": deleted})


@location_bp.route("/stores/availability", methods=["POST"])
@login_required
@handle_api_errors
def check_store_availability():
    """Body: {"domains": ["shop.example", ...]}"""
    data = get_json_body()
    return success_response(data=AvailabilityService.check_stores(current_user.id, data.get("domains")))
