"""
Model: Reservation
At most one row per item may be in the 'reserved' state; the partial unique
index below is what guarantees it under concurrent guests.
"""

from wishwatch.constants import RESERVATION_RESERVED
from wishwatch.db import db, now_utc
from wishwatch.utils import isoformat_utc

_ACTIVE_ONLY = db.text(f"status = '{RESERVATION_RESERVED}'")


class Reservation(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    shared_wishlist_id = db.Column(
        db.Integer, db.ForeignKey("shared_wishlist.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id = db.Column(db.Integer, db.ForeignKey("wishlist_item.id", ondelete="CASCADE"), nullable=False)
    reserved_by_name = db.Column(db.String(100), nullable=False)
    reserved_at = db.Column(db.DateTime, default=now_utc, nullable=False)
    released_at = db.Column(db.DateTime)
    status = db.Column(db.String(20), default=RESERVATION_RESERVED, nullable=False)

    __table_args__ = (
        db.Index(
            "uix_reservation_active_item",
            "item_id",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
    )

    def to_dict(self, include_name=True):
        data = {
            "id": self.id,
            "item_id": self.item_id,
            "reserved_at": isoformat_utc(self.reserved_at),
            "status": self.status,
        }
        if include_name:
            data["reserved_by_name"] = self.reserved_by_name
        return data
