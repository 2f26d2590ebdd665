"""
Model: UserAlertSettings
One row per user, created lazily with defaults on first read.
"""

from wishwatch.db import db, now_utc


class UserAlertSettings(db.Model):
    __tablename__ = "user_alert_settings"

    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), primary_key=True)
    alerts_enabled = db.Column(db.Boolean, default=True, nullable=False)
    notify_price_drops = db.Column(db.Boolean, default=True, nullable=False)
    notify_under_target = db.Column(db.Boolean, default=True, nullable=False)
    weekly_digest = db.Column(db.Boolean, default=False, nullable=False)
    quiet_hours_enabled = db.Column(db.Boolean, default=False, nullable=False)
    quiet_start = db.Column(db.String(5))  # "22:00", local wall clock
    quiet_end = db.Column(db.String(5))  # "07:00"
    timezone = db.Column(db.String(64))  # IANA name, falls back to alerts.default_timezone
    created_at = db.Column(db.DateTime, default=now_utc)
    updated_at = db.Column(db.DateTime, default=now_utc, onupdate=now_utc)

    def to_dict(self):
        return {
            "alerts_enabled": self.alerts_enabled,
            "notify_price_drops": self.notify_price_drops,
            "notify_under_target": self.notify_under_target,
            "weekly_digest": self.weekly_digest,
            "quiet_hours_enabled": self.quiet_hours_enabled,
            "quiet_start": self.quiet_start or None,
            "quiet_end": self.quiet_end or None,
            "timezone": self.timezone or None,
        }
