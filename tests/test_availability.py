"""
Tests for store availability, shipping rules and the user's location
"""
from types import SimpleNamespace

import pytest

from wishwatch.constants import CITY_REQUIRED, NO_CITY_MATCH, NO_COUNTRY_MATCH, NO_LOCATION_MESSAGE
from wishwatch.exceptions import ConflictException, NotFoundException, ValidationException
from wishwatch.services.availability import AvailabilityService, normalize_domain, resolve


def _store(countries=("US",), requires_city=False):
    return SimpleNamespace(countries_supported=list(countries), requires_city=requires_city)


def _rule(**overrides):
    fields = {
        "ships_to_country": True,
        "ships_to_city": True,
        "city_whitelist": None,
        "city_blacklist": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestResolve:
    """Tests for the pure availability decision"""

    def test_country_not_supported(self):
        result = resolve(_store(["US"]), None, "FR", "Paris")

        assert result.available is False
        assert result.reason_code == NO_COUNTRY_MATCH

    def test_country_compared_case_insensitively(self):
        assert resolve(_store(["us"]), None, "US", None).available is True
        assert resolve(_store(["US"]), None, "us", None).available is True

    def test_no_rule_means_available(self):
        result = resolve(_store(["US"]), None, "US", "Boston")

        assert result.available is True
        assert result.reason_code is None

    @pytest.mark.parametrize("city", [None, "", "   "])
    def test_city_required_without_city(self, city):
        result = resolve(_store(["US"], requires_city=True), None, "US", city)

        assert result.reason_code == CITY_REQUIRED

    def test_city_required_with_city(self):
        assert resolve(_store(["US"], requires_city=True), None, "US", "Austin").available is True

    def test_rule_does_not_ship_to_country(self):
        result = resolve(_store(["US"]), _rule(ships_to_country=False), "US", "Boston")

        assert result.reason_code == NO_COUNTRY_MATCH

    def test_blacklisted_city_matches_normalized(self):
        result = resolve(_store(["FR"]), _rule(city_blacklist=["Paris"]), "FR", " paris ")

        assert result.available is False
        assert result.reason_code == NO_CITY_MATCH

    def test_city_outside_whitelist(self):
        rule = _rule(city_whitelist=["Lyon", "Nice"])

        assert resolve(_store(["FR"]), rule, "FR", "Paris").reason_code == NO_CITY_MATCH
        assert resolve(_store(["FR"]), rule, "FR", "LYON").available is True

    def test_whitelist_without_city(self):
        result = resolve(_store(["FR"]), _rule(city_whitelist=["Lyon"]), "FR", None)

        assert result.reason_code == NO_CITY_MATCH

    def test_rule_does_not_ship_to_city(self):
        result = resolve(_store(["US"]), _rule(ships_to_city=False), "US", "Boston")

        assert result.reason_code == NO_CITY_MATCH

    def test_blacklist_wins_over_whitelist(self):
        rule = _rule(city_whitelist=["Paris"], city_blacklist=["Paris"])

        assert resolve(_store(["FR"]), rule, "FR", "Paris").reason_code == NO_CITY_MATCH


class TestNormalizeDomain:
    @pytest.mark.parametrize(
        "raw, expected",
        [("Shop.Example", "shop.example"), ("www.shop.example", "shop.example"), ("  WWW.Shop.Example ", "shop.example")],
    )
    def test_normalize(self, raw, expected):
        assert normalize_domain(raw) == expected


class TestStoresAndRules:
    """Tests for the store catalogue"""

    def test_create_store_normalizes_input(self, app):
        store = AvailabilityService.create_store(
            {"name": "Shop", "domain": "www.Shop.Example", "countries_supported": ["us", "CA", "US"]}
        )

        assert store.domain == "shop.example"
        assert store.countries_supported == ["US", "CA"]
        assert store.requires_city is False

    def test_duplicate_domain_conflicts(self, app):
        AvailabilityService.create_store({"name": "Shop", "domain": "shop.example", "countries_supported": ["US"]})

        with pytest.raises(ConflictException):
            AvailabilityService.create_store({"name": "Again", "domain": "shop.example", "countries_supported": ["US"]})

    def test_invalid_country_code(self, app):
        with pytest.raises(ValidationException):
            AvailabilityService.create_store({"name": "Shop", "domain": "shop.example", "countries_supported": ["USA"]})

    def test_duplicate_rule_for_country_conflicts(self, app):
        store = AvailabilityService.create_store({"name": "Shop", "domain": "shop.example", "countries_supported": ["US"]})
        AvailabilityService.add_shipping_rule(store.id, {"country_code": "US"})

        with pytest.raises(ConflictException):
            AvailabilityService.add_shipping_rule(store.id, {"country_code": "us"})

    def test_rule_for_missing_store(self, app):
        with pytest.raises(NotFoundException):
            AvailabilityService.add_shipping_rule(9999, {"country_code": "US"})


class TestCheckStores:
    """Tests for the batch availability check"""

    def test_without_location(self, make_user):
        user, _ = make_user()

        result = AvailabilityService.check_stores(user.id, ["shop.example", "other.example"])

        assert result["has_location"] is False
        assert result["message"] == NO_LOCATION_MESSAGE
        assert result["unknown_count"] == 2
        assert all(entry["status"] == "unknown" for entry in result["results"])

    def test_mixed_results(self, make_user):
        user, _ = make_user()
        AvailabilityService.set_location(user.id, {"country_code": "fr", "city": "Paris"})
        AvailabilityService.create_store({"name": "Local", "domain": "local.example", "countries_supported": ["FR"]})
        blocked = AvailabilityService.create_store(
            {"name": "Blocked", "domain": "blocked.example", "countries_supported": ["FR"]}
        )
        AvailabilityService.add_shipping_rule(blocked.id, {"country_code": "FR", "city_blacklist": ["paris"]})
        AvailabilityService.create_store({"name": "US only", "domain": "us.example", "countries_supported": ["US"]})

        result = AvailabilityService.check_stores(
            user.id, ["www.local.example", "blocked.example", "us.example", "nowhere.example"]
        )

        by_domain = {entry["domain"]: entry for entry in result["results"]}
        assert result["has_location"] is True
        assert result["location"]["country_code"] == "FR"
        assert by_domain["local.example"]["status"] == "available"
        assert by_domain["blocked.example"]["reason_code"] == NO_CITY_MATCH
        assert by_domain["blocked.example"]["reason_message"] == "Doesn't deliver to your city"
        assert by_domain["us.example"]["reason_code"] == NO_COUNTRY_MATCH
        assert by_domain["nowhere.example"]["status"] == "unknown"
        assert (result["available_count"], result["unavailable_count"], result["unknown_count"]) == (1, 2, 1)

    def test_domains_must_be_a_list(self, make_user):
        user, _ = make_user()

        with pytest.raises(ValidationException):
            AvailabilityService.check_stores(user.id, "shop.example")


class TestLocationRoutes:
    """Tests for the location API endpoints"""

    def test_location_lifecycle(self, client, make_user):
        _, headers = make_user()

        response = client.get("/api/users/location", headers=headers)
        assert response.status_code == 404
        assert response.get_json()["error"] == "Location not set"

        response = client.post(
            "/api/users/location", json={"country_code": "de", "city": "Berlin"}, headers=headers
        )
        assert response.status_code == 200
        assert response.get_json()["data"]["country_code"] == "DE"

        response = client.post("/api/users/location", json={"country_code": "AT"}, headers=headers)
        assert response.get_json()["data"]["country_code"] == "AT"
        assert response.get_json()["data"]["city"] is None

        response = client.get("/api/users/location", headers=headers)
        assert response.get_json()["data"]["country_code"] == "AT"

        response = client.delete("/api/users/location", headers=headers)
        assert response.get_json()["data"] == {"deleted": True}

        response = client.delete("/api/users/location", headers=headers)
        assert response.get_json()["data"] == {"deleted": False}

    def test_invalid_country_code(self, client, make_user):
        _, headers = make_user()

        response = client.post("/api/users/location", json={"country_code": "Germany"}, headers=headers)

        assert response.status_code == 400
        assert response.get_json()["code"] == "VALIDATION_ERROR"

    def test_store_routes_and_availability(self, client, make_user):
        _, headers = make_user()
        client.post("/api/users/location", json={"country_code": "US", "city": "Denver"}, headers=headers)

        response = client.post(
            "/api/stores",
            json={"name": "Shop", "domain": "shop.example", "countries_supported": ["US"], "requires_city": True},
            headers=headers,
        )
        assert response.status_code == 201
        store_id = response.get_json()["data"]["id"]

        response = client.post(
            f"/api/stores/{store_id}/shipping-rules",
            json={"country_code": "US", "city_whitelist": ["Boulder"]},
            headers=headers,
        )
        assert response.status_code == 201

        response = client.post(
            f"/api/stores/{store_id}/shipping-rules", json={"country_code": "US"}, headers=headers
        )
        assert response.status_code == 409

        response = client.post("/api/stores/availability", json={"domains": ["shop.example"]}, headers=headers)
        result = response.get_json()["data"]["results"][0]
        assert result["status"] == "unavailable"
        assert result["reason_code"] == NO_CITY_MATCH
