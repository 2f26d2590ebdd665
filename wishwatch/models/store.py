"""
Models: Store, ShippingRule
Country and city lists are JSON arrays; country codes are stored upper-case.
"""

from wishwatch.db import db, now_utc


class Store(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    domain = db.Column(db.String(255), unique=True, nullable=False, index=True)
    type = db.Column(db.String(20), default="website", nullable=False)  # website | marketplace
    countries_supported = db.Column(db.JSON, default=list, nullable=False)
    requires_city = db.Column(db.Boolean, default=False, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=now_utc)

    shipping_rules = db.relationship(
        "ShippingRule",
        backref="store",
        lazy=True,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "domain": self.domain,
            "type": self.type,
            "countries_supported": list(self.countries_supported or []),
            "requires_city": self.requires_city,
            "notes": self.notes,
        }


class ShippingRule(db.Model):
    __tablename__ = "shipping_rule"

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("store.id", ondelete="CASCADE"), nullable=False)
    country_code = db.Column(db.String(2), nullable=False)
    city_whitelist = db.Column(db.JSON)
    city_blacklist = db.Column(db.JSON)
    ships_to_country = db.Column(db.Boolean, default=True, nullable=False)
    ships_to_city = db.Column(db.Boolean, default=True, nullable=False)
    delivery_methods = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=now_utc)

    __table_args__ = (db.UniqueConstraint("store_id", "country_code", name="uix_shipping_rule_store_country"),)

    def to_dict(self):
        return {
            "id": self.id,
            "store_id": self.store_id,
            "country_code": self.country_code,
            "city_whitelist": self.city_whitelist,
            "city_blacklist": self.city_blacklist,
            "ships_to_country": self.ships_to_country,
            "ships_to_city": self.ships_to_city,
            "delivery_methods": self.delivery_methods,
        }
