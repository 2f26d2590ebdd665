"""
Store Routes - store catalogue and per-country shipping rules
"""

from flask import Blueprint
from flask_login import login_required

from wishwatch.api_responses import get_json_body, handle_api_errors, success_response
from wishwatch.services.availability import AvailabilityService

stores_bp = Blueprint("stores", __name__, url_prefix="/api")


@stores_bp.route("/stores", methods=["POST"])
@login_required
@handle_api_errors
def create_store():
    store = AvailabilityService.create_store(get_json_body())
    return success_response(data=store.to_dict(), status_code=201)


@stores_bp.route("/stores/<int:store_id>/shipping-rules", methods=["POST"])
@login_required
@handle_api_errors
def create_shipping_rule(store_id):
    rule = AvailabilityService.add_shipping_rule(store_id, get_json_body())
    return success_response(data=rule.to_dict(), status_code=201)
