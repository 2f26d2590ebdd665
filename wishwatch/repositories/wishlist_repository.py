"""
Repository for Wishlist database operations
"""

from sqlalchemy.exc import SQLAlchemyError

from wishwatch.db import db
from wishwatch.exceptions import StorageException
from wishwatch.models import Wishlist


class WishlistRepository:
    """Repository for Wishlist database operations"""

    @staticmethod
    def get_by_user_and_id(user_id, id):
        """Get a Wishlist only if it belongs to the user"""
        return Wishlist.query.filter_by(user_id=user_id, id=id).first()

    @staticmethod
    def create(**kwargs):
        """Create new Wishlist record"""
        try:
            item = Wishlist(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to create wishlist: {e}")
