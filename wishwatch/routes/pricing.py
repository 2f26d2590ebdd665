"""
Pricing Routes - price refresh, refresh job status, drop info and history
"""

from flask import Blueprint, request
from flask_login import current_user, login_required

from wishwatch.api_responses import handle_api_errors, success_response
from wishwatch.services.factory import get_refresh_service

pricing_bp = Blueprint("pricing", __name__, url_prefix="/api")


@pricing_bp.route("/wishlists/<int:wishlist_id>/refresh-prices", methods=["POST"])
@login_required
@handle_api_errors
def refresh_wishlist_prices(wishlist_id):
    """
    Re-check prices of every item of the wishlist that has a source URL.
    Per-item failures do not fail the request; they show up in the counts.
    """
    result = get_refresh_service().refresh_wishlist(current_user.id, wishlist_id)
    return success_response(data=result.to_dict())


@pricing_bp.route("/price-refresh/status/<int:job_id>", methods=["GET"])
@login_required
@handle_api_errors
def get_refresh_status(job_id):
    return success_response(data=get_refresh_service().job_status(current_user.id, job_id))


@pricing_bp.route("/items/<int:item_id>/price-drop-info", methods=["GET"])
@login_required
@handle_api_errors
def get_price_drop_info(item_id):
    return success_response(data=get_refresh_service().price_drop_info(current_user.id, item_id))


@pricing_bp.route("/items/<int:item_id>/price-history", methods=["GET"])
@login_required
@handle_api_errors
def get_price_history(item_id):
    limit = request.args.get("limit", type=int)
    if limit is not None and limit < 1:
        raise ValueError("'limit' must be a positive integer")
    return success_response(data=get_refresh_service().price_history(current_user.id, item_id, limit=limit))
