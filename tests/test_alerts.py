"""
Tests for alert settings, quiet hours, dedupe and target price alerts
"""
import threading
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from wishwatch.db import db
from wishwatch.exceptions import ValidationException
from wishwatch.models import UserAlertSettings
from wishwatch.repositories.alert_settings_repository import AlertSettingsRepository
from wishwatch.services.alert_service import is_in_quiet_hours
from wishwatch.services.drop_detector import DropEvent


def _drop(item_id, old="100.00", new="80.00", pct="20.00"):
    return DropEvent(item_id, "Lamp", Decimal(old), Decimal(new), Decimal(pct), "USD")


def _utc(hour, minute=0, day=1):
    return datetime(2026, 7, day, hour, minute, tzinfo=timezone.utc)


class TestQuietHoursWindow:
    """Tests for the pure quiet-hours window check"""

    @pytest.mark.parametrize(
        "now, expected",
        [
            (time(23, 30), True),
            (time(22, 0), True),
            (time(0, 0), True),
            (time(6, 59), True),
            (time(7, 0), False),
            (time(12, 0), False),
            (time(21, 59), False),
        ],
    )
    def test_window_wrapping_midnight(self, now, expected):
        assert is_in_quiet_hours("22:00", "07:00", now) is expected

    @pytest.mark.parametrize("now, expected", [(time(9, 0), True), (time(16, 59), True), (time(17, 0), False), (time(8, 0), False)])
    def test_same_day_window(self, now, expected):
        assert is_in_quiet_hours("09:00", "17:00", now) is expected

    def test_equal_bounds_is_empty(self):
        assert is_in_quiet_hours("08:00", "08:00", time(8, 0)) is False


class TestAlertSettings:
    """Tests for lazy settings creation and partial updates"""

    def test_defaults_created_on_first_read(self, make_user, alert_service):
        user, _ = make_user()

        prefs = alert_service.get_settings(user.id)

        assert prefs.alerts_enabled is True
        assert prefs.notify_price_drops is True
        assert prefs.notify_under_target is True
        assert prefs.weekly_digest is False
        assert prefs.quiet_hours_enabled is False
        assert UserAlertSettings.query.count() == 1

        alert_service.get_settings(user.id)
        assert UserAlertSettings.query.count() == 1

    def test_concurrent_first_reads_create_one_row(self, app, make_user):
        user, _ = make_user()
        user_id = user.id
        barrier = threading.Barrier(6)
        errors = []

        def read():
            with app.app_context():
                try:
                    barrier.wait()
                    AlertSettingsRepository.get_or_create(user_id)
                except Exception as e:
                    errors.append(e)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=read) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert UserAlertSettings.query.filter_by(user_id=user_id).count() == 1

    def test_partial_update_keeps_other_fields(self, make_user, alert_service):
        user, _ = make_user()
        alert_service.update_settings(user.id, {"notify_price_drops": False})

        prefs = alert_service.update_settings(
            user.id, {"quiet_hours_enabled": True, "quiet_start": "22:00", "quiet_end": "07:00"}
        )

        assert prefs.notify_price_drops is False
        assert prefs.alerts_enabled is True
        assert prefs.quiet_start == "22:00"
        assert prefs.quiet_end == "07:00"

    @pytest.mark.parametrize(
        "partial",
        [
            {"quiet_start": "25:00"},
            {"quiet_end": "7:00"},
            {"alerts_enabled": "yes"},
            {"timezone": "Mars/Olympus_Mons"},
            {"unknown_flag": True},
        ],
    )
    def test_invalid_updates_rejected(self, make_user, alert_service, partial):
        user, _ = make_user()

        with pytest.raises(ValidationException):
            alert_service.update_settings(user.id, partial)

    def test_settings_routes(self, client, make_user):
        _, headers = make_user()

        initial = client.get("/api/alert-settings", headers=headers)
        updated = client.put("/api/alert-settings", json={"weekly_digest": True}, headers=headers)
        invalid = client.put("/api/alert-settings", json={"quiet_start": "noon"}, headers=headers)

        assert initial.status_code == 200
        assert initial.get_json()["data"]["alerts_enabled"] is True
        assert updated.get_json()["data"]["weekly_digest"] is True
        assert invalid.status_code == 400
        assert invalid.get_json()["code"] == "VALIDATION_ERROR"

    def test_settings_require_auth(self, client):
        response = client.get("/api/alert-settings")

        assert response.status_code == 401


class TestNotifyIfAllowed:
    """Gate order: alerts -> drops -> quiet hours -> dedupe -> dispatch"""

    @pytest.fixture
    def owner_item(self, make_user, make_wishlist):
        user, _ = make_user()
        _, items = make_wishlist(user, items=[{"title": "Lamp"}, {"title": "Rug"}])
        return user, items[0], items[1]

    def test_dispatches_by_default(self, owner_item, alert_service, notifier):
        user, item, _ = owner_item

        assert alert_service.notify_if_allowed(user.id, _drop(item.id), now=_utc(12)) is True
        assert notifier.sent[0][1] == "price_drop"
        assert notifier.sent[0][2]["pct_change"] == 20.0

    def test_alerts_disabled(self, owner_item, alert_service, notifier):
        user, item, _ = owner_item
        alert_service.update_settings(user.id, {"alerts_enabled": False})

        assert alert_service.notify_if_allowed(user.id, _drop(item.id), now=_utc(12)) is False
        assert notifier.sent == []

    def test_price_drops_disabled(self, owner_item, alert_service, notifier):
        user, item, _ = owner_item
        alert_service.update_settings(user.id, {"notify_price_drops": False})

        assert alert_service.notify_if_allowed(user.id, _drop(item.id), now=_utc(12)) is False
        assert notifier.sent == []

    def test_quiet_hours_suppress(self, owner_item, alert_service, notifier):
        user, item, _ = owner_item
        alert_service.update_settings(
            user.id, {"quiet_hours_enabled": True, "quiet_start": "22:00", "quiet_end": "07:00"}
        )

        assert alert_service.notify_if_allowed(user.id, _drop(item.id), now=_utc(23, 30)) is False
        assert notifier.sent == []
        assert alert_service.notify_if_allowed(user.id, _drop(item.id), now=_utc(12)) is True

    def test_quiet_hours_need_both_bounds(self, owner_item, alert_service):
        user, item, _ = owner_item
        alert_service.update_settings(user.id, {"quiet_hours_enabled": True, "quiet_start": "22:00"})

        assert alert_service.notify_if_allowed(user.id, _drop(item.id), now=_utc(23, 30)) is True

    def test_quiet_hours_use_user_timezone(self, owner_item, alert_service):
        """03:30 UTC is 23:30 the previous evening in New York (EDT)"""
        user, item, _ = owner_item
        alert_service.update_settings(
            user.id,
            {"quiet_hours_enabled": True, "quiet_start": "22:00", "quiet_end": "07:00", "timezone": "America/New_York"},
        )

        assert alert_service.notify_if_allowed(user.id, _drop(item.id), now=_utc(3, 30)) is False
        assert alert_service.notify_if_allowed(user.id, _drop(item.id), now=_utc(16)) is True

    def test_repeat_drop_within_window_is_deduped(self, owner_item, alert_service, notifier):
        user, item, _ = owner_item
        start = _utc(9)

        assert alert_service.notify_if_allowed(user.id, _drop(item.id), now=start) is True
        small = _drop(item.id, old="80.00", new="78.00", pct="2.50")
        assert alert_service.notify_if_allowed(user.id, small, now=start + timedelta(hours=2)) is False
        assert len(notifier.sent) == 1

    def test_significant_drop_overrides_dedupe(self, owner_item, alert_service, notifier):
        user, item, _ = owner_item
        start = _utc(9)
        alert_service.notify_if_allowed(user.id, _drop(item.id), now=start)

        big = _drop(item.id, old="80.00", new="72.00", pct="10.00")

        assert alert_service.notify_if_allowed(user.id, big, now=start + timedelta(hours=2)) is True
        assert len(notifier.sent) == 2

    def test_dedupe_window_expires(self, owner_item, alert_service):
        user, item, _ = owner_item
        start = _utc(9)
        alert_service.notify_if_allowed(user.id, _drop(item.id), now=start)

        small = _drop(item.id, old="80.00", new="79.00", pct="1.25")

        assert alert_service.notify_if_allowed(user.id, small, now=start + timedelta(hours=25)) is True

    def test_dedupe_is_per_item(self, owner_item, alert_service):
        user, item, other_item = owner_item
        alert_service.notify_if_allowed(user.id, _drop(item.id), now=_utc(9))

        assert alert_service.notify_if_allowed(user.id, _drop(other_item.id, pct="1.00"), now=_utc(10)) is True

    def test_failed_dispatch_is_not_logged(self, owner_item, alert_service, notifier):
        """A failed delivery does not start a dedupe window"""
        user, item, _ = owner_item
        notifier.fail = True
        assert alert_service.notify_if_allowed(user.id, _drop(item.id), now=_utc(9)) is False

        notifier.fail = False
        assert alert_service.notify_if_allowed(user.id, _drop(item.id, pct="1.00"), now=_utc(10)) is True


class TestQuietHoursStatus:
    def test_next_send_time_is_next_quiet_end(self, make_user, alert_service):
        user, _ = make_user()
        alert_service.update_settings(
            user.id, {"quiet_hours_enabled": True, "quiet_start": "22:00", "quiet_end": "07:00"}
        )

        evening = alert_service.quiet_hours_status(user.id, now=_utc(23, 30))
        early = alert_service.quiet_hours_status(user.id, now=_utc(2))
        midday = alert_service.quiet_hours_status(user.id, now=_utc(12))

        assert evening["in_quiet_hours"] is True
        assert evening["next_send_time"] == "2026-07-02T07:00:00+00:00"
        assert early["next_send_time"] == "2026-07-01T07:00:00+00:00"
        assert midday == {"in_quiet_hours": False, "next_send_time": None, "timezone": "UTC"}

    def test_next_send_time_in_user_timezone(self, make_user, alert_service):
        user, _ = make_user()
        alert_service.update_settings(
            user.id,
            {"quiet_hours_enabled": True, "quiet_start": "22:00", "quiet_end": "07:00", "timezone": "Europe/Paris"},
        )

        # 23:30 in Paris (CEST, UTC+2)
        status = alert_service.quiet_hours_status(user.id, now=_utc(21, 30))

        assert status["in_quiet_hours"] is True
        assert status["next_send_time"] == "2026-07-02T05:00:00+00:00"


class TestTargetPriceAlerts:
    """Under-target notifications fire once per crossing"""

    def _item(self, make_user, make_wishlist, **fields):
        user, _ = make_user()
        values = {"title": "Chair", "alert_enabled": True, "alert_target_price": Decimal("50.00")}
        values.update(fields)
        _, (item,) = make_wishlist(user, items=[values])
        return user, item

    def _set_price(self, item, price):
        item.current_price = Decimal(price)
        db.session.commit()

    def test_fires_once_per_crossing(self, make_user, make_wishlist, alert_service, notifier):
        user, item = self._item(make_user, make_wishlist, current_price=Decimal("45.00"))

        assert alert_service.check_target(user.id, item, now=_utc(12)) is True
        assert item.target_alerted_price == Decimal("45.00")
        self._set_price(item, "40.00")
        assert alert_service.check_target(user.id, item, now=_utc(13)) is False
        assert notifier.kinds() == ["under_target"]

    def test_rearms_after_rising_above_target(self, make_user, make_wishlist, alert_service, notifier):
        user, item = self._item(make_user, make_wishlist, current_price=Decimal("45.00"))
        alert_service.check_target(user.id, item, now=_utc(12))

        self._set_price(item, "60.00")
        assert alert_service.check_target(user.id, item, now=_utc(13)) is False
        assert item.target_alerted_price is None

        self._set_price(item, "49.00")
        assert alert_service.check_target(user.id, item, now=_utc(14)) is True
        assert notifier.kinds() == ["under_target", "under_target"]

    def test_price_equal_to_target_counts(self, make_user, make_wishlist, alert_service):
        user, item = self._item(make_user, make_wishlist, current_price=Decimal("50.00"))

        assert alert_service.check_target(user.id, item, now=_utc(12)) is True

    def test_no_alert_when_disabled_on_item(self, make_user, make_wishlist, alert_service, notifier):
        user, item = self._item(make_user, make_wishlist, current_price=Decimal("10.00"), alert_enabled=False)

        assert alert_service.check_target(user.id, item, now=_utc(12)) is False
        assert notifier.sent == []

    def test_no_alert_when_user_turned_targets_off(self, make_user, make_wishlist, alert_service):
        user, item = self._item(make_user, make_wishlist, current_price=Decimal("10.00"))
        alert_service.update_settings(user.id, {"notify_under_target": False})

        assert alert_service.check_target(user.id, item, now=_utc(12)) is False
        assert item.target_alerted_price is None

    def test_quiet_hours_do_not_consume_crossing(self, make_user, make_wishlist, alert_service, notifier):
        user, item = self._item(make_user, make_wishlist, current_price=Decimal("10.00"))
        alert_service.update_settings(
            user.id, {"quiet_hours_enabled": True, "quiet_start": "22:00", "quiet_end": "07:00"}
        )

        assert alert_service.check_target(user.id, item, now=_utc(23)) is False
        assert alert_service.check_target(user.id, item, now=_utc(8)) is True
        assert notifier.kinds() == ["under_target"]


class TestItemsWithTargets:
    def test_sorted_case_insensitively_across_wishlists(self, make_user, make_wishlist, alert_service):
        user, _ = make_user()
        other, _ = make_user()
        target = {"alert_enabled": True, "alert_target_price": Decimal("10.00")}
        make_wishlist(user, name="Kitchen", items=[dict(title="banana", **target), dict(title="cherry", **target)])
        make_wishlist(
            user,
            name="Garden",
            items=[
                dict(title="Apple", current_price=Decimal("12.00"), **target),
                {"title": "No target", "alert_enabled": True},
                {"title": "Disabled", "alert_enabled": False, "alert_target_price": Decimal("5.00")},
            ],
        )
        make_wishlist(other, items=[dict(title="Avocado", **target)])

        result = alert_service.items_with_targets(user.id)

        assert result["count"] == 3
        assert [i["title"] for i in result["items"]] == ["Apple", "banana", "cherry"]
        apple = result["items"][0]
        assert apple["wishlist_name"] == "Garden"
        assert apple["current_price"] == 12.0
        assert apple["target_price"] == 10.0
        assert apple["currency"] == "USD"

    def test_route(self, client, make_user, make_wishlist):
        user, headers = make_user()
        make_wishlist(user, items=[{"title": "Desk", "alert_enabled": True, "alert_target_price": Decimal("99.99")}])

        response = client.get("/api/alert-settings/items-with-targets", headers=headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["count"] == 1
        assert response.get_json()["data"]["items"][0]["target_price"] == 99.99
