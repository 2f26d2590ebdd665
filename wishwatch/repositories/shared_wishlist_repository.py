"""
Repository for SharedWishlist database operations
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from wishwatch.db import db
from wishwatch.exceptions import ConflictException, StorageException
from wishwatch.models import SharedWishlist


class SharedWishlistRepository:
    """Repository for SharedWishlist database operations"""

    @staticmethod
    def get_by_slug(share_slug):
        return SharedWishlist.query.filter_by(share_slug=share_slug).first()

    @staticmethod
    def get_by_wishlist_id(wishlist_id):
        return SharedWishlist.query.filter_by(wishlist_id=wishlist_id).first()

    @staticmethod
    def create(**kwargs):
        """Create new SharedWishlist record"""
        try:
            shared = SharedWishlist(**kwargs)
            db.session.add(shared)
            db.session.commit()
            db.session.refresh(shared)
            return shared
        except IntegrityError:
            db.session.rollback()
            raise ConflictException("Wishlist is already shared or the share slug is taken")
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to share wishlist: {e}")

    @staticmethod
    def update(shared, **kwargs):
        for key, value in kwargs.items():
            if hasattr(shared, key):
                setattr(shared, key, value)
        try:
            db.session.commit()
            return shared
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to update share settings: {e}")
