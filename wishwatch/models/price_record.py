"""
Model: PriceRecord
Append-only price observations. Rows only disappear with their item.
"""

from wishwatch.constants import DEFAULT_CURRENCY
from wishwatch.db import db, now_utc
from wishwatch.utils import isoformat_utc, money_to_json


class PriceRecord(db.Model):
    __tablename__ = "price_record"

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("wishlist_item.id", ondelete="CASCADE"), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), default=DEFAULT_CURRENCY, nullable=False)
    recorded_at = db.Column(db.DateTime, default=now_utc, nullable=False)

    __table_args__ = (db.Index("idx_price_record_item_recorded", "item_id", "recorded_at"),)

    def to_dict(self):
        return {
            "id": self.id,
            "item_id": self.item_id,
            "price": money_to_json(self.price),
            "currency": self.currency,
            "recorded_at": isoformat_utc(self.recorded_at),
        }
