"""
Model: WishlistItem
"""

from wishwatch.constants import DEFAULT_CURRENCY
from wishwatch.db import db, now_utc
from wishwatch.utils import isoformat_utc, money_to_json


class WishlistItem(db.Model):
    __tablename__ = "wishlist_item"

    id = db.Column(db.Integer, primary_key=True)
    wishlist_id = db.Column(db.Integer, db.ForeignKey("wishlist.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(500), nullable=False)
    source_url = db.Column(db.String(2000))
    current_price = db.Column(db.Numeric(10, 2))
    currency = db.Column(db.String(3), default=DEFAULT_CURRENCY, nullable=False)
    last_checked_at = db.Column(db.DateTime)
    alert_enabled = db.Column(db.Boolean, default=False, nullable=False)
    alert_target_price = db.Column(db.Numeric(10, 2))
    # Price at which the last "under target" alert fired; NULL once the price climbs back above target
    target_alerted_price = db.Column(db.Numeric(10, 2))
    created_at = db.Column(db.DateTime, default=now_utc)

    price_records = db.relationship(
        "PriceRecord",
        backref="item",
        lazy=True,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "wishlist_id": self.wishlist_id,
            "title": self.title,
            "source_url": self.source_url,
            "current_price": money_to_json(self.current_price),
            "currency": self.currency,
            "last_checked_at": isoformat_utc(self.last_checked_at),
            "alert_enabled": self.alert_enabled,
            "alert_target_price": money_to_json(self.alert_target_price),
        }
