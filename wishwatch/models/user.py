"""
Model: User
Identity is provisioned externally; this row only anchors ownership.
"""

from flask_login import UserMixin

from wishwatch.db import db, now_utc


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=now_utc)
