"""
Repository for UserLocation database operations
"""

from sqlalchemy.exc import SQLAlchemyError

from wishwatch.db import db
from wishwatch.exceptions import StorageException
from wishwatch.models import UserLocation


class LocationRepository:
    """Repository for UserLocation database operations"""

    @staticmethod
    def get_by_user(user_id):
        return UserLocation.query.filter_by(user_id=user_id).first()

    @staticmethod
    def upsert(user_id, **kwargs):
        """Create or replace the user's location"""
        try:
            location = LocationRepository.get_by_user(user_id)
            if location is None:
                location = UserLocation(user_id=user_id)
                db.session.add(location)
            for key, value in kwargs.items():
                if hasattr(location, key):
                    setattr(location, key, value)
            db.session.commit()
            return location
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to save location for user {user_id}: {e}")

    @staticmethod
    def delete(user_id):
        """Delete the user's location. Returns False when there was none."""
        location = LocationRepository.get_by_user(user_id)
        if not location:
            return False
        try:
            db.session.delete(location)
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to delete location for user {user_id}: {e}")
