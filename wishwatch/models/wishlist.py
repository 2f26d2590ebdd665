"""
Model: Wishlist
"""

from wishwatch.db import db, now_utc


class Wishlist(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, default=now_utc)

    items = db.relationship(
        "WishlistItem",
        backref="wishlist",
        lazy=True,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
