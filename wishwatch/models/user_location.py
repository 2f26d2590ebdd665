"""
Model: UserLocation
"""

from wishwatch.db import db, now_utc
from wishwatch.utils import isoformat_utc


class UserLocation(db.Model):
    __tablename__ = "user_location"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), unique=True, nullable=False)
    country_code = db.Column(db.String(2), nullable=False)
    country_name = db.Column(db.String(100))
    city = db.Column(db.String(100))
    region = db.Column(db.String(100))
    postal_code = db.Column(db.String(20))
    updated_at = db.Column(db.DateTime, default=now_utc, onupdate=now_utc)

    def to_dict(self):
        return {
            "country_code": self.country_code,
            "country_name": self.country_name,
            "city": self.city,
            "region": self.region,
            "postal_code": self.postal_code,
            "updated_at": isoformat_utc(self.updated_at),
        }
