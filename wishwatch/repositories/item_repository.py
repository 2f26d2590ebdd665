"""
Repository for WishlistItem database operations
"""

from sqlalchemy.exc import SQLAlchemyError

from wishwatch.db import db
from wishwatch.exceptions import StorageException
from wishwatch.models import Wishlist, WishlistItem


class ItemRepository:
    """Repository for WishlistItem database operations"""

    @staticmethod
    def get_by_id(id):
        return db.session.get(WishlistItem, id)

    @staticmethod
    def get_for_user(user_id, item_id):
        """Get an item only if its wishlist belongs to the user"""
        return (
            WishlistItem.query.join(Wishlist, WishlistItem.wishlist_id == Wishlist.id)
            .filter(WishlistItem.id == item_id, Wishlist.user_id == user_id)
            .first()
        )

    @staticmethod
    def get_in_wishlist(wishlist_id, item_id):
        return WishlistItem.query.filter_by(wishlist_id=wishlist_id, id=item_id).first()

    @staticmethod
    def get_trackable(wishlist_id):
        """Items of a wishlist that carry a source URL"""
        return (
            WishlistItem.query.filter(
                WishlistItem.wishlist_id == wishlist_id,
                WishlistItem.source_url.isnot(None),
                WishlistItem.source_url != "",
            )
            .order_by(WishlistItem.id)
            .all()
        )

    @staticmethod
    def get_with_targets(user_id):
        """(item, wishlist name) pairs for alert-enabled items with a target, across all of the user's wishlists"""
        return (
            db.session.query(WishlistItem, Wishlist.name)
            .join(Wishlist, WishlistItem.wishlist_id == Wishlist.id)
            .filter(
                Wishlist.user_id == user_id,
                WishlistItem.alert_enabled.is_(True),
                WishlistItem.alert_target_price.isnot(None),
            )
            .order_by(WishlistItem.id)
            .all()
        )

    @staticmethod
    def create(**kwargs):
        """Create new WishlistItem record"""
        try:
            item = WishlistItem(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to create item: {e}")

    @staticmethod
    def save(item):
        """Commit pending changes on an already loaded item"""
        try:
            db.session.add(item)
            db.session.commit()
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to save item {item.id}: {e}")
