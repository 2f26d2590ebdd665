"""
Wishwatch - wishlist price tracking, store availability and reservations
"""

__version__ = "1.0.0"
