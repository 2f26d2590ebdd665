"""
Price drop detection.

Compares a previously stored price to a freshly observed one. Pure: no I/O,
no clock, Decimal arithmetic only.
"""

from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

from wishwatch.utils import CENTS, money_to_json, to_money

DropResult = namedtuple("DropResult", ["is_drop", "pct_change"])

_ZERO = Decimal("0.00")


def evaluate(old_price, new_price):
    """
    Decide whether going from old_price to new_price is a drop.

    pct_change is (old - new) / old * 100 rounded half-up to 2 decimals, so a
    rise yields a negative value. With no previous price, or a previous price
    of zero, there is nothing to compare against: not a drop, pct_change 0.
    """
    new_price = to_money(new_price)
    if new_price is None:
        raise ValueError("new_price is required")

    if old_price is None:
        return DropResult(False, _ZERO)

    old_price = to_money(old_price)
    if old_price == 0:
        return DropResult(False, _ZERO)

    pct_change = ((old_price - new_price) / old_price * 100).quantize(CENTS, rounding=ROUND_HALF_UP)
    return DropResult(old_price > new_price, pct_change)


class DropEvent(namedtuple("DropEvent", ["item_id", "title", "old_price", "new_price", "pct_change", "currency"])):
    """A detected decrease between the stored price and a new observation"""

    __slots__ = ()

    def to_dict(self):
        return {
            "item_id": self.item_id,
            "title": self.title,
            "old_price": money_to_json(self.old_price),
            "new_price": money_to_json(self.new_price),
            "pct_change": float(self.pct_change),
            "currency": self.currency,
        }
