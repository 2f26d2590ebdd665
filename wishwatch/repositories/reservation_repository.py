"""
Repository for Reservation database operations

Exclusivity is enforced by the partial unique index on active reservations:
an insert that loses the race fails with IntegrityError and is reported as a
conflict.
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from wishwatch.constants import RESERVATION_RELEASED, RESERVATION_RESERVED
from wishwatch.db import db, now_utc
from wishwatch.exceptions import ConflictException, StorageException
from wishwatch.models import Reservation, WishlistItem


class ReservationRepository:
    """Repository for Reservation database operations"""

    @staticmethod
    def get_active(item_id):
        return Reservation.query.filter_by(item_id=item_id, status=RESERVATION_RESERVED).first()

    @staticmethod
    def list_active(shared_wishlist_id):
        return (
            Reservation.query.filter_by(shared_wishlist_id=shared_wishlist_id, status=RESERVATION_RESERVED)
            .order_by(Reservation.reserved_at.asc(), Reservation.id.asc())
            .all()
        )

    @staticmethod
    def list_active_with_titles(shared_wishlist_id):
        """(reservation, item title) pairs for the owner view"""
        return (
            db.session.query(Reservation, WishlistItem.title)
            .join(WishlistItem, Reservation.item_id == WishlistItem.id)
            .filter(
                Reservation.shared_wishlist_id == shared_wishlist_id,
                Reservation.status == RESERVATION_RESERVED,
            )
            .order_by(Reservation.reserved_at.asc(), Reservation.id.asc())
            .all()
        )

    @staticmethod
    def create_active(shared_wishlist_id, item_id, reserved_by_name):
        """Insert an active reservation; losing a concurrent race raises ConflictException"""
        try:
            reservation = Reservation(
                shared_wishlist_id=shared_wishlist_id,
                item_id=item_id,
                reserved_by_name=reserved_by_name,
                reserved_at=now_utc(),
                status=RESERVATION_RESERVED,
            )
            db.session.add(reservation)
            db.session.commit()
            return reservation
        except IntegrityError:
            db.session.rollback()
            raise ConflictException("Item is already reserved")
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to reserve item {item_id}: {e}")

    @staticmethod
    def release_active(item_id):
        """Mark the active reservation of an item released. Returns the number of rows changed."""
        try:
            count = Reservation.query.filter_by(item_id=item_id, status=RESERVATION_RESERVED).update(
                {"status": RESERVATION_RELEASED, "released_at": now_utc()}, synchronize_session=False
            )
            db.session.commit()
            return count
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to release reservation for item {item_id}: {e}")
