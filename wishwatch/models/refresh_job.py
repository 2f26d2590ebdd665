"""
Model: RefreshJob
One row per price refresh run of a wishlist.
"""

from wishwatch.constants import JOB_RUNNING
from wishwatch.db import db, now_utc
from wishwatch.utils import isoformat_utc


class RefreshJob(db.Model):
    __tablename__ = "refresh_job"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    wishlist_id = db.Column(db.Integer, db.ForeignKey("wishlist.id", ondelete="CASCADE"), nullable=False)
    status = db.Column(db.String(20), default=JOB_RUNNING, nullable=False)
    total_items = db.Column(db.Integer, default=0, nullable=False)
    items_checked = db.Column(db.Integer, default=0, nullable=False)
    items_updated = db.Column(db.Integer, default=0, nullable=False)
    drop_count = db.Column(db.Integer, default=0, nullable=False)
    error = db.Column(db.Text)
    started_at = db.Column(db.DateTime, default=now_utc, nullable=False)
    completed_at = db.Column(db.DateTime)

    def to_dict(self):
        return {
            "job_id": self.id,
            "wishlist_id": self.wishlist_id,
            "status": self.status,
            "total_items": self.total_items,
            "items_checked": self.items_checked,
            "items_updated": self.items_updated,
            "drop_count": self.drop_count,
            "error": self.error,
            "started_at": isoformat_utc(self.started_at),
            "completed_at": isoformat_utc(self.completed_at),
        }
