"""
Repository for RefreshJob database operations
"""

from sqlalchemy.exc import SQLAlchemyError

from wishwatch.constants import JOB_RUNNING
from wishwatch.db import db, now_utc
from wishwatch.exceptions import StorageException
from wishwatch.models import RefreshJob


class RefreshJobRepository:
    """Repository for RefreshJob database operations"""

    @staticmethod
    def get_for_user(user_id, job_id):
        return RefreshJob.query.filter_by(id=job_id, user_id=user_id).first()

    @staticmethod
    def start(user_id, wishlist_id, total_items):
        try:
            job = RefreshJob(
                user_id=user_id,
                wishlist_id=wishlist_id,
                status=JOB_RUNNING,
                total_items=total_items,
                started_at=now_utc(),
            )
            db.session.add(job)
            db.session.commit()
            return job
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to start refresh job: {e}")

    @staticmethod
    def finish(job, status, error=None, **counts):
        """Close a job with its final status and counters"""
        try:
            for key, value in counts.items():
                if hasattr(job, key):
                    setattr(job, key, value)
            job.status = status
            job.error = error
            job.completed_at = now_utc()
            db.session.commit()
            return job
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageException(f"Failed to finish refresh job {job.id}: {e}")
