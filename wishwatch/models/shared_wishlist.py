"""
Model: SharedWishlist
"""

from wishwatch.db import db, now_utc


class SharedWishlist(db.Model):
    __tablename__ = "shared_wishlist"

    id = db.Column(db.Integer, primary_key=True)
    wishlist_id = db.Column(db.Integer, db.ForeignKey("wishlist.id", ondelete="CASCADE"), unique=True, nullable=False)
    share_slug = db.Column(db.String(64), unique=True, nullable=False, index=True)
    visibility = db.Column(db.String(20), default="unlisted", nullable=False)  # public | unlisted
    allow_reservations = db.Column(db.Boolean, default=True, nullable=False)
    hide_reserved_items = db.Column(db.Boolean, default=False, nullable=False)
    show_reserver_names = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=now_utc)

    wishlist = db.relationship("Wishlist", backref=db.backref("share", uselist=False, passive_deletes=True))

    def to_dict(self):
        return {
            "share_slug": self.share_slug,
            "visibility": self.visibility,
            "allow_reservations": self.allow_reservations,
            "hide_reserved_items": self.hide_reserved_items,
            "show_reserver_names": self.show_reserver_names,
        }
