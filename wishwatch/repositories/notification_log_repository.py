"""
Repository for NotificationLog database operations
"""

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from wishwatch.db import db, now_utc
from wishwatch.exceptions import StorageException
from wishwatch.models import NotificationLog


class NotificationLogRepository:
    """Repository for NotificationLog database operations"""

    @staticmethod
    def get(user_id, item_id, kind):
        return NotificationLog.query.filter_by(user_id=user_id, item_id=item_id, kind=kind).first()

    @staticmethod
    def record_sent(user_id, item_id, kind, sent_at=None):
        """Upsert the last-sent timestamp for (user, item, kind)"""
        sent_at = sent_at or now_utc()
        entry = NotificationLogRepository.get(user_id, item_id, kind)
        if entry is None:
            try:
                entry = NotificationLog(user_id=user_id, item_id=item_id, kind=kind, last_sent_at=sent_at)
                db.session.add(entry)
                db.session.commit()
                return entry
            except IntegrityError as e:
                db.session.rollback()
                # Another request logged the same (user, item, kind) first
                entry = NotificationLogRepository.get(user_id, item_id, kind)
                if entry is None:
                    raise StorageException(f"Failed to record notification for item {item_id}: {e}")
            except SQLAlchemyError as e:
                db.session.rollback()
                raise StorageException(f"Failed to record notification for item {item_id}: {e}")

        try:
            entry.last_sent_at = sent_at
            db.session.commit()
            return entry
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to record notification for item {item_id}: {e}")
