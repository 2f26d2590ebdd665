"""
Models package

One model per module; import from here:
    from wishwatch.models import Wishlist, WishlistItem, PriceRecord
"""

from .user import User
from .apitoken import ApiToken
from .wishlist import Wishlist
from .wishlist_item import WishlistItem
from .price_record import PriceRecord
from .alert_settings import UserAlertSettings
from .notification_log import NotificationLog
from .user_location import UserLocation
from .store import Store, ShippingRule
from .shared_wishlist import SharedWishlist
from .reservation import Reservation
from .refresh_job import RefreshJob

__all__ = [
    "User",
    "ApiToken",
    "Wishlist",
    "WishlistItem",
    "PriceRecord",
    "UserAlertSettings",
    "NotificationLog",
    "UserLocation",
    "Store",
    "ShippingRule",
    "SharedWishlist",
    "Reservation",
    "RefreshJob",
]
