"""
Repository for UserAlertSettings database operations
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import structlog

from wishwatch.db import db
from wishwatch.exceptions import StorageException
from wishwatch.models import UserAlertSettings

logger = structlog.get_logger("repositories")


class AlertSettingsRepository:
    """Repository for UserAlertSettings database operations"""

    @staticmethod
    def get_by_user(user_id):
        return db.session.get(UserAlertSettings, user_id)

    @staticmethod
    def get_or_create(user_id):
        """
        Return the user's settings row, inserting one with column defaults
        when absent. A concurrent insert of the same row is not an error:
        the loser rolls back and reads the winner's row.
        """
        settings = db.session.get(UserAlertSettings, user_id)
        if settings is not None:
            return settings

        try:
            settings = UserAlertSettings(user_id=user_id)
            db.session.add(settings)
            db.session.commit()
            logger.info("alert_settings_created", user_id=user_id)
            return settings
        except IntegrityError:
            db.session.rollback()
            logger.debug("alert_settings_created_concurrently", user_id=user_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to create alert settings for user {user_id}: {e}")

        settings = db.session.get(UserAlertSettings, user_id)
        if settings is None:
            raise StorageException(f"Alert settings for user {user_id} vanished after concurrent insert")
        return settings

    @staticmethod
    def update(user_id, **kwargs):
        """Apply the given fields to the user's settings (row is created if needed)"""
        settings = AlertSettingsRepository.get_or_create(user_id)
        for key, value in kwargs.items():
            if hasattr(settings, key):
                setattr(settings, key, value)
        try:
            db.session.commit()
            return settings
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to update alert settings for user {user_id}: {e}")
