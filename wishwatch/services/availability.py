"""
Store availability for a user's location.

`resolve` is the pure decision: given a store, its shipping rule for the
user's country (if any) and the user's country/city, can the store deliver?
`AvailabilityService` wraps it with the persistence around stores, shipping
rules and the user's saved location.
"""

from collections import namedtuple
import re

import structlog

from wishwatch.constants import (
    CITY_REQUIRED,
    NO_LOCATION_MESSAGE,
    NO_CITY_MATCH,
    NO_COUNTRY_MATCH,
    STORE_TYPES,
    UNAVAILABILITY_MESSAGES,
)
from wishwatch.exceptions import NotFoundException, ValidationException
from wishwatch.repositories.location_repository import LocationRepository
from wishwatch.repositories.store_repository import StoreRepository
from wishwatch.utils import cities_match, normalize_city_name

logger = structlog.get_logger("availability")

Availability = namedtuple("Availability", ["available", "reason_code"])

AVAILABLE = Availability(True, None)

_COUNTRY_CODE_RE = re.compile(r"^[A-Za-z]{2}$")


def unavailability_message(reason_code):
    return UNAVAILABILITY_MESSAGES.get(reason_code)


def _city_in(city, cities):
    return any(cities_match(city, candidate) for candidate in cities or [])


def resolve(store, rule, user_country_code, user_city):
    """
    Decide whether `store` can deliver to the user. Country codes compare
    case-insensitively; cities compare normalized. `rule` is the store's
    shipping rule for the user's country, or None.
    """
    country = (user_country_code or "").strip().upper()
    supported = {code.upper() for code in store.countries_supported or []}

    if country not in supported:
        return Availability(False, NO_COUNTRY_MATCH)

    has_city = bool(normalize_city_name(user_city))
    if store.requires_city and not has_city:
        return Availability(False, CITY_REQUIRED)

    if rule is None:
        return AVAILABLE

    if not rule.ships_to_country:
        return Availability(False, NO_COUNTRY_MATCH)
    if _city_in(user_city, rule.city_blacklist):
        return Availability(False, NO_CITY_MATCH)
    if rule.city_whitelist and not _city_in(user_city, rule.city_whitelist):
        return Availability(False, NO_CITY_MATCH)
    if not rule.ships_to_city:
        return Availability(False, NO_CITY_MATCH)
    return AVAILABLE


# Request validation helpers


def _country_code(value, field="country_code"):
    if not isinstance(value, str) or not _COUNTRY_CODE_RE.match(value.strip()):
        raise ValidationException(f"'{field}' must be a two-letter ISO country code", details=str(value))
    return value.strip().upper()


def _optional_text(data, field, max_length=255):
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationException(f"'{field}' must be a string")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationException(f"'{field}' is too long")
    return value or None


def _required_text(data, field, max_length=255):
    value = _optional_text(data, field, max_length)
    if not value:
        raise ValidationException(f"'{field}' is required")
    return value


def _bool(data, field, default):
    value = data.get(field, default)
    if not isinstance(value, bool):
        raise ValidationException(f"'{field}' must be a boolean")
    return value


def _string_list(data, field):
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(entry, str) for entry in value):
        raise ValidationException(f"'{field}' must be a list of strings")
    cleaned = [entry.strip() for entry in value if entry.strip()]
    return cleaned or None


def normalize_domain(domain):
    domain = domain.strip().lower()
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


class AvailabilityService:
    # User location

    @staticmethod
    def get_location(user_id):
        location = LocationRepository.get_by_user(user_id)
        if location is None:
            raise NotFoundException("Location not set")
        return location

    @staticmethod
    def set_location(user_id, data):
        fields = {
            "country_code": _country_code(data.get("country_code")),
            "country_name": _optional_text(data, "country_name", 100),
            "city": _optional_text(data, "city", 100),
            "region": _optional_text(data, "region", 100),
            "postal_code": _optional_text(data, "postal_code", 20),
        }
        location = LocationRepository.upsert(user_id, **fields)
        logger.info("user_location_saved", user_id=user_id, country_code=fields["country_code"])
        return location

    @staticmethod
    def delete_location(user_id):
        deleted = LocationRepository.delete(user_id)
        logger.info("user_location_deleted", user_id=user_id, existed=deleted)
        return deleted

    # Stores and shipping rules

    @staticmethod
    def create_store(data):
        store_type = data.get("type", "website")
        if store_type not in STORE_TYPES:
            raise ValidationException(f"'type' must be one of: {', '.join(STORE_TYPES)}")

        countries = data.get("countries_supported")
        if not isinstance(countries, list):
            raise ValidationException("'countries_supported' must be a list of country codes")
        codes = []
        for code in countries:
            code = _country_code(code, "countries_supported")
            if code not in codes:
                codes.append(code)

        store = StoreRepository.create(
            name=_required_text(data, "name", 200),
            domain=normalize_domain(_required_text(data, "domain")),
            type=store_type,
            countries_supported=codes,
            requires_city=_bool(data, "requires_city", False),
            notes=_optional_text(data, "notes", 2000),
        )
        logger.info("store_created", store_id=store.id, domain=store.domain)
        return store

    @staticmethod
    def add_shipping_rule(store_id, data):
        store = StoreRepository.get_by_id(store_id)
        if store is None:
            raise NotFoundException("Store not found")

        rule = StoreRepository.create_rule(
            store_id=store.id,
            country_code=_country_code(data.get("country_code")),
            city_whitelist=_string_list(data, "city_whitelist"),
            city_blacklist=_string_list(data, "city_blacklist"),
            ships_to_country=_bool(data, "ships_to_country", True),
            ships_to_city=_bool(data, "ships_to_city", True),
            delivery_methods=_string_list(data, "delivery_methods"),
        )
        logger.info("shipping_rule_created", store_id=store.id, country_code=rule.country_code)
        return rule

    # Batch check

    @staticmethod
    def check_stores(user_id, domains):
        """
        Resolve availability of each store domain for the user's location.
        Domains without a known store are reported as unknown, never raised.
        """
        if not isinstance(domains, list) or not all(isinstance(d, str) and d.strip() for d in domains):
            raise ValidationException("'domains' must be a list of non-empty strings")
        domains = [normalize_domain(d) for d in domains]

        location = LocationRepository.get_by_user(user_id)
        if location is None:
            return {
                "has_location": False,
                "location": None,
                "message": NO_LOCATION_MESSAGE,
                "results": [{"domain": domain, "status": "unknown"} for domain in domains],
                "available_count": 0,
                "unavailable_count": 0,
                "unknown_count": len(domains),
            }

        stores = StoreRepository.get_by_domains(domains)
        rules = StoreRepository.get_rules_for_country([s.id for s in stores.values()], location.country_code)

        results = []
        counts = {"available": 0, "unavailable": 0, "unknown": 0}
        for domain in domains:
            store = stores.get(domain)
            if store is None:
                results.append({"domain": domain, "status": "unknown"})
                counts["unknown"] += 1
                continue

            availability = resolve(store, rules.get(store.id), location.country_code, location.city)
            status = "available" if availability.available else "unavailable"
            counts[status] += 1
            results.append(
                {
                    "domain": domain,
                    "store_id": store.id,
                    "store_name": store.name,
                    "status": status,
                    "reason_code": availability.reason_code,
                    "reason_message": unavailability_message(availability.reason_code),
                }
            )

        logger.info("store_availability_checked", user_id=user_id, stores=len(domains), **counts)
        return {
            "has_location": True,
            "location": location.to_dict(),
            "results": results,
            "available_count": counts["available"],
            "unavailable_count": counts["unavailable"],
            "unknown_count": counts["unknown"],
        }
