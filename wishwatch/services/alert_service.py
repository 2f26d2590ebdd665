"""
Alert policy: per-user notification settings, quiet hours, target prices
and the gates a detected price event must pass before it is dispatched.

Gate order for price drops:
    alerts_enabled -> notify_price_drops -> quiet hours -> dedupe window -> dispatch

Quiet hours are local wall-clock "HH:MM" bounds interpreted in the user's
timezone (or alerts.default_timezone). The window is [start, end) and wraps
past midnight when start > end.
"""

from datetime import datetime, timedelta

import pytz
import structlog

from wishwatch.constants import NOTIFY_PRICE_DROP, NOTIFY_UNDER_TARGET
from wishwatch.exceptions import ValidationException
from wishwatch.metrics import notifications_total
from wishwatch.repositories.alert_settings_repository import AlertSettingsRepository
from wishwatch.repositories.item_repository import ItemRepository
from wishwatch.repositories.notification_log_repository import NotificationLogRepository
from wishwatch.settings import load_settings
from wishwatch.utils import ensure_utc, hhmm_to_minutes, is_valid_hhmm, isoformat_utc, money_to_json, now_utc, to_money

logger = structlog.get_logger("alerts")

BOOLEAN_FIELDS = (
    "alerts_enabled",
    "notify_price_drops",
    "notify_under_target",
    "weekly_digest",
    "quiet_hours_enabled",
)
TIME_FIELDS = ("quiet_start", "quiet_end")
UPDATABLE_FIELDS = BOOLEAN_FIELDS + TIME_FIELDS + ("timezone",)


def is_in_quiet_hours(quiet_start, quiet_end, local_time):
    """
    True when local_time (anything with .hour and .minute) falls in
    [quiet_start, quiet_end). Equal bounds describe an empty window.
    """
    start = hhmm_to_minutes(quiet_start)
    end = hhmm_to_minutes(quiet_end)
    current = local_time.hour * 60 + local_time.minute

    if start == end:
        return False
    if start < end:
        return start <= current < end
    return current >= start or current < end


def validate_settings_update(partial):
    """Return the cleaned subset of fields to change, or raise ValidationException"""
    if not isinstance(partial, dict):
        raise ValidationException("Settings update must be an object")

    unknown = sorted(set(partial) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationException("Unknown settings fields", details=", ".join(unknown))

    changes = {}
    for field in BOOLEAN_FIELDS:
        if field in partial:
            if not isinstance(partial[field], bool):
                raise ValidationException(f"'{field}' must be a boolean")
            changes[field] = partial[field]

    for field in TIME_FIELDS:
        if field in partial:
            value = partial[field]
            if value in (None, ""):
                changes[field] = None
            elif not is_valid_hhmm(value):
                raise ValidationException(f"'{field}' must be a time in HH:MM format", details=str(value))
            else:
                changes[field] = value

    if "timezone" in partial:
        value = partial["timezone"]
        if value in (None, ""):
            changes["timezone"] = None
        elif not isinstance(value, str) or value not in pytz.all_timezones_set:
            raise ValidationException("'timezone' must be an IANA timezone name", details=str(value))
        else:
            changes["timezone"] = value

    return changes


class AlertService:
    def __init__(self, notifier, settings=None):
        self.notifier = notifier
        alerts = (settings or load_settings()).get("alerts", {})
        self.default_timezone = alerts.get("default_timezone") or "UTC"
        self.dedupe_window = timedelta(hours=float(alerts.get("dedupe_window_hours", 24)))
        self.significant_drop_pct = to_money(alerts.get("significant_drop_pct", 5))

    # Settings

    def get_settings(self, user_id):
        """The user's settings; a row with defaults is created on first access"""
        return AlertSettingsRepository.get_or_create(user_id)

    def update_settings(self, user_id, partial):
        changes = validate_settings_update(partial)
        if not changes:
            return self.get_settings(user_id)
        prefs = AlertSettingsRepository.update(user_id, **changes)
        logger.info("alert_settings_updated", user_id=user_id, fields=sorted(changes))
        return prefs

    # Quiet hours

    def user_timezone(self, prefs):
        return pytz.timezone(prefs.timezone or self.default_timezone)

    def quiet_hours_active(self, prefs, now=None):
        if not prefs.quiet_hours_enabled or not prefs.quiet_start or not prefs.quiet_end:
            return False
        local_now = (ensure_utc(now) or now_utc()).astimezone(self.user_timezone(prefs))
        return is_in_quiet_hours(prefs.quiet_start, prefs.quiet_end, local_now)

    def next_send_time(self, prefs, now=None):
        """Next occurrence of quiet_end in the user's timezone, as a UTC instant"""
        tz = self.user_timezone(prefs)
        local_now = (ensure_utc(now) or now_utc()).astimezone(tz)
        end_minutes = hhmm_to_minutes(prefs.quiet_end)

        day = local_now.date()
        candidate = tz.localize(datetime(day.year, day.month, day.day, end_minutes // 60, end_minutes % 60))
        if candidate <= local_now:
            day = day + timedelta(days=1)
            candidate = tz.localize(datetime(day.year, day.month, day.day, end_minutes // 60, end_minutes % 60))
        return candidate.astimezone(pytz.utc)

    def quiet_hours_status(self, user_id, now=None):
        prefs = self.get_settings(user_id)
        in_quiet = self.quiet_hours_active(prefs, now)
        return {
            "in_quiet_hours": in_quiet,
            "next_send_time": isoformat_utc(self.next_send_time(prefs, now)) if in_quiet else None,
            "timezone": prefs.timezone or self.default_timezone,
        }

    # Gates

    def is_duplicate(self, user_id, event, now):
        """A repeat drop inside the dedupe window, unless the drop is significant"""
        last = NotificationLogRepository.get(user_id, event.item_id, NOTIFY_PRICE_DROP)
        if last is None:
            return False
        if now - ensure_utc(last.last_sent_at) > self.dedupe_window:
            return False
        return event.pct_change < self.significant_drop_pct

    def _suppress(self, kind, reason, **context):
        notifications_total.labels(kind=kind, outcome=f"suppressed_{reason}").inc()
        logger.info("notification_suppressed", kind=kind, reason=reason, **context)
        return False

    def _dispatch(self, user_id, kind, item_id, payload, now):
        if not self.notifier.dispatch(user_id, kind, payload):
            notifications_total.labels(kind=kind, outcome="failed").inc()
            return False
        NotificationLogRepository.record_sent(user_id, item_id, kind, sent_at=now)
        notifications_total.labels(kind=kind, outcome="dispatched").inc()
        return True

    def notify_if_allowed(self, user_id, event, now=None):
        """Run a drop event through the gates; True when it was dispatched"""
        now = ensure_utc(now) or now_utc()
        prefs = self.get_settings(user_id)

        if not prefs.alerts_enabled:
            return self._suppress(NOTIFY_PRICE_DROP, "alerts_disabled", user_id=user_id, item_id=event.item_id)
        if not prefs.notify_price_drops:
            return self._suppress(NOTIFY_PRICE_DROP, "drops_disabled", user_id=user_id, item_id=event.item_id)
        if self.quiet_hours_active(prefs, now):
            return self._suppress(NOTIFY_PRICE_DROP, "quiet_hours", user_id=user_id, item_id=event.item_id)
        if self.is_duplicate(user_id, event, now):
            return self._suppress(NOTIFY_PRICE_DROP, "duplicate", user_id=user_id, item_id=event.item_id)

        return self._dispatch(user_id, NOTIFY_PRICE_DROP, event.item_id, event.to_dict(), now)

    def check_target(self, user_id, item, now=None):
        """
        Fire the "under target" notification once per crossing.

        item.target_alerted_price holds the price at which the last one fired.
        It is cleared whenever the item is no longer under an active target,
        which re-arms the alert for the next crossing. Suppression by settings
        or quiet hours leaves the crossing unconsumed.
        """
        now = ensure_utc(now) or now_utc()
        target = to_money(item.alert_target_price)
        current = to_money(item.current_price)

        if not item.alert_enabled or target is None or current is None or current > target:
            if item.target_alerted_price is not None:
                item.target_alerted_price = None
                ItemRepository.save(item)
                logger.debug("target_alert_rearmed", item_id=item.id)
            return False

        if item.target_alerted_price is not None:
            return False

        prefs = self.get_settings(user_id)
        if not prefs.alerts_enabled:
            return self._suppress(NOTIFY_UNDER_TARGET, "alerts_disabled", user_id=user_id, item_id=item.id)
        if not prefs.notify_under_target:
            return self._suppress(NOTIFY_UNDER_TARGET, "target_disabled", user_id=user_id, item_id=item.id)
        if self.quiet_hours_active(prefs, now):
            return self._suppress(NOTIFY_UNDER_TARGET, "quiet_hours", user_id=user_id, item_id=item.id)

        payload = {
            "item_id": item.id,
            "title": item.title,
            "current_price": money_to_json(current),
            "target_price": money_to_json(target),
            "currency": item.currency,
        }
        if not self._dispatch(user_id, NOTIFY_UNDER_TARGET, item.id, payload, now):
            return False

        item.target_alerted_price = current
        ItemRepository.save(item)
        return True

    def items_with_targets(self, user_id):
        rows = ItemRepository.get_with_targets(user_id)
        rows = sorted(rows, key=lambda row: (row[0].title.casefold(), row[0].id))
        items = [
            {
                "id": item.id,
                "title": item.title,
                "current_price": money_to_json(item.current_price),
                "target_price": money_to_json(item.alert_target_price),
                "currency": item.currency,
                "wishlist_id": item.wishlist_id,
                "wishlist_name": wishlist_name,
            }
            for item, wishlist_name in rows
        ]
        return {"count": len(items), "items": items}
