"""
Model: NotificationLog
Last time a notification of a given kind went out for an item.
"""

from wishwatch.db import db, now_utc


class NotificationLog(db.Model):
    __tablename__ = "notification_log"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    item_id = db.Column(db.Integer, db.ForeignKey("wishlist_item.id", ondelete="CASCADE"), nullable=False)
    kind = db.Column(db.String(20), nullable=False)
    last_sent_at = db.Column(db.DateTime, default=now_utc, nullable=False)

    __table_args__ = (db.UniqueConstraint("user_id", "item_id", "kind", name="uix_notification_user_item_kind"),)
