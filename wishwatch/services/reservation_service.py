"""
Guest reservations on shared wishlists.

An item is unreserved (no active row), reserved, or released. At most one
active reservation exists per item; concurrent guests race on the insert and
the partial unique index picks the winner.
"""

import structlog

from wishwatch.exceptions import ConflictException, NotFoundException, ValidationException
from wishwatch.metrics import reservations_total
from wishwatch.repositories.item_repository import ItemRepository
from wishwatch.repositories.reservation_repository import ReservationRepository
from wishwatch.repositories.shared_wishlist_repository import SharedWishlistRepository
from wishwatch.repositories.wishlist_repository import WishlistRepository

logger = structlog.get_logger("reservations")

GUEST_NAME_MAX_LENGTH = 100

VISIBILITY_FIELDS = ("allow_reservations", "hide_reserved_items", "show_reserver_names")


class ReservationService:
    @staticmethod
    def _get_share(share_slug):
        shared = SharedWishlistRepository.get_by_slug(share_slug)
        if shared is None:
            raise NotFoundException("Shared wishlist not found")
        return shared

    @staticmethod
    def _get_owned_wishlist(user_id, wishlist_id):
        wishlist = WishlistRepository.get_by_user_and_id(user_id, wishlist_id)
        if wishlist is None:
            raise NotFoundException("Wishlist not found")
        return wishlist

    @staticmethod
    def reserve(share_slug, item_id, guest_name):
        shared = ReservationService._get_share(share_slug)
        if not shared.allow_reservations:
            reservations_total.labels(outcome="not_allowed").inc()
            raise ValidationException("Reservations are not allowed for this wishlist")

        if ItemRepository.get_in_wishlist(shared.wishlist_id, item_id) is None:
            raise NotFoundException("Item not found")

        if not isinstance(guest_name, str) or not guest_name.strip():
            raise ValidationException("'reserved_by_name' is required")
        guest_name = guest_name.strip()
        if len(guest_name) > GUEST_NAME_MAX_LENGTH:
            raise ValidationException("'reserved_by_name' is too long")

        if ReservationRepository.get_active(item_id) is not None:
            reservations_total.labels(outcome="conflict").inc()
            raise ConflictException("Item is already reserved")

        try:
            reservation = ReservationRepository.create_active(shared.id, item_id, guest_name)
        except ConflictException:
            reservations_total.labels(outcome="conflict").inc()
            raise

        reservations_total.labels(outcome="reserved").inc()
        logger.info("item_reserved", share_slug=share_slug, item_id=item_id, reservation_id=reservation.id)
        return reservation

    @staticmethod
    def release(share_slug, item_id):
        """Release the item's active reservation. Releasing an unreserved item is a no-op."""
        shared = ReservationService._get_share(share_slug)
        if ItemRepository.get_in_wishlist(shared.wishlist_id, item_id) is None:
            raise NotFoundException("Item not found")

        released = ReservationRepository.release_active(item_id)
        reservations_total.labels(outcome="released" if released else "release_noop").inc()
        logger.info("reservation_released", share_slug=share_slug, item_id=item_id, released=bool(released))
        return bool(released)

    @staticmethod
    def list_active(share_slug):
        """Active reservations for the guest view; names are hidden unless the owner shows them"""
        shared = ReservationService._get_share(share_slug)
        reservations = ReservationRepository.list_active(shared.id)
        return {
            "share_slug": shared.share_slug,
            "hide_reserved_items": shared.hide_reserved_items,
            "reservations": [r.to_dict(include_name=shared.show_reserver_names) for r in reservations],
        }

    @staticmethod
    def list_for_owner(user_id, wishlist_id):
        wishlist = ReservationService._get_owned_wishlist(user_id, wishlist_id)
        shared = SharedWishlistRepository.get_by_wishlist_id(wishlist.id)
        if shared is None:
            return {"wishlist_id": wishlist.id, "shared": False, "reservations": []}

        rows = ReservationRepository.list_active_with_titles(shared.id)
        reservations = []
        for reservation, title in rows:
            entry = reservation.to_dict()
            entry["item_title"] = title
            reservations.append(entry)
        return {"wishlist_id": wishlist.id, "shared": True, "reservations": reservations}

    @staticmethod
    def update_visibility_settings(user_id, wishlist_id, partial):
        wishlist = ReservationService._get_owned_wishlist(user_id, wishlist_id)

        if not isinstance(partial, dict):
            raise ValidationException("Settings update must be an object")
        unknown = sorted(set(partial) - set(VISIBILITY_FIELDS))
        if unknown:
            raise ValidationException("Unknown reservation settings", details=", ".join(unknown))
        for field, value in partial.items():
            if not isinstance(value, bool):
                raise ValidationException(f"'{field}' must be a boolean")

        shared = SharedWishlistRepository.get_by_wishlist_id(wishlist.id)
        if shared is None:
            raise ValidationException("Wishlist has not been shared yet")

        if partial:
            shared = SharedWishlistRepository.update(shared, **partial)
            logger.info("reservation_settings_updated", wishlist_id=wishlist.id, fields=sorted(partial))
        return shared
