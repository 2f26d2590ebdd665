"""
Reservation Routes

Guest routes under /shared/<slug> need no account and are rate limited;
the wishlist owner's routes require authentication.
"""

from flask import Blueprint
from flask_login import current_user, login_required

from wishwatch.api_responses import get_json_body, handle_api_errors, success_response
from wishwatch.middleware.rate_limit import guest_rate_limit, limiter
from wishwatch.services.reservation_service import ReservationService

reservations_bp = Blueprint("reservations", __name__, url_prefix="/api")


@reservations_bp.route("/shared/<share_slug>/reservations", methods=["GET"])
@limiter.limit(guest_rate_limit)
@handle_api_errors
def list_shared_reservations(share_slug):
    return success_response(data=ReservationService.list_active(share_slug))


@reservations_bp.route("/shared/<share_slug>/reserve", methods=["POST"])
@limiter.limit(guest_rate_limit)
@handle_api_errors
def reserve_item(share_slug):
    """Body: {"item_id": int, "reserved_by_name": str}"""
    data = get_json_body()
    item_id = data["item_id"]
    if isinstance(item_id, bool) or not isinstance(item_id, int):
        raise ValueError("'item_id' must be an integer")
    reservation = ReservationService.reserve(share_slug, item_id, data.get("reserved_by_name"))
    return success_response(data=reservation.to_dict(), status_code=201)


@reservations_bp.route("/shared/<share_slug>/reserve/<int:item_id>", methods=["DELETE"])
@limiter.limit(guest_rate_limit)
@handle_api_errors
def release_item(share_slug, item_id):
    released = ReservationService.release(share_slug, item_id)
    return success_response(data={"item_id": item_id, "released": released})


@reservations_bp.route("/wishlists/<int:wishlist_id>/reservations", methods=["GET"])
@login_required
@handle_api_errors
def list_owner_reservations(wishlist_id):
    return success_response(data=ReservationService.list_for_owner(current_user.id, wishlist_id))


@reservations_bp.route("/wishlists/<int:wishlist_id>/reservation-settings", methods=["PUT"])
@login_required
@handle_api_errors
def update_reservation_settings(wishlist_id):
    shared = ReservationService.update_visibility_settings(current_user.id, wishlist_id, get_json_body())
    return success_response(data=shared.to_dict(), message="Reservation settings updated")
