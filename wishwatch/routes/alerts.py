"""
Alert Routes - alert settings, target price overview and quiet hours
"""

from flask import Blueprint
from flask_login import current_user, login_required

from wishwatch.api_responses import get_json_body, handle_api_errors, success_response
from wishwatch.services.factory import get_alert_service

alerts_bp = Blueprint("alerts", __name__, url_prefix="/api")


@alerts_bp.route("/alert-settings", methods=["GET"])
@login_required
@handle_api_errors
def get_alert_settings():
    prefs = get_alert_service().get_settings(current_user.id)
    return success_response(data=prefs.to_dict())


@alerts_bp.route("/alert-settings", methods=["PUT"])
@login_required
@handle_api_errors
def update_alert_settings():
    """Partial update: only the fields present in the body change"""
    prefs = get_alert_service().update_settings(current_user.id, get_json_body())
    return success_response(data=prefs.to_dict(), message="Alert settings updated")


@alerts_bp.route("/alert-settings/items-with-targets", methods=["GET"])
@login_required
@handle_api_errors
def get_items_with_targets():
    return success_response(data=get_alert_service().items_with_targets(current_user.id))


@alerts_bp.route("/alert-settings/quiet-hours-status", methods=["GET"])
@login_required
@handle_api_errors
def get_quiet_hours_status():
    return success_response(data=get_alert_service().quiet_hours_status(current_user.id))
