import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_DIR = os.path.dirname(APP_DIR)
CONFIG_DIR = os.environ.get("WISHWATCH_CONFIG_DIR", os.path.join(PROJECT_DIR, "config"))
CONFIG_FILE = os.environ.get("WISHWATCH_CONFIG", os.path.join(CONFIG_DIR, "settings.yaml"))
DB_FILE = os.path.join(CONFIG_DIR, "wishwatch.db")

WISHWATCH_DB = "sqlite:///" + DB_FILE

BUILD_VERSION = "20261018_0900"

DEFAULT_SETTINGS = {
    "database": {
        "uri": WISHWATCH_DB,
    },
    "refresh": {
        "max_concurrency": 5,
        "item_timeout_seconds": 20,
    },
    "extraction": {
        "endpoint": "",
        "api_key": "",
    },
    "notifier": {
        "type": "log",  # log | webhook
        "webhook_url": "",
        "secret": "",
        "timeout_seconds": 5,
    },
    "alerts": {
        "default_timezone": "UTC",
        "dedupe_window_hours": 24,
        "significant_drop_pct": 5,
    },
    "reservations": {
        "rate_limit": "30 per minute",
        "rate_limit_enabled": True,
        "rate_limit_storage": "memory://",
    },
}

DEFAULT_CURRENCY = "USD"

# Notification kinds
NOTIFY_PRICE_DROP = "price_drop"
NOTIFY_UNDER_TARGET = "under_target"

# Reservation status
RESERVATION_RESERVED = "reserved"
RESERVATION_RELEASED = "released"

# Refresh job status
JOB_RUNNING = "running"
JOB_COMPLETED = "completed"
JOB_FAILED = "failed"

STORE_TYPES = ["website", "marketplace"]

# Store availability reason codes
NO_COUNTRY_MATCH = "NO_COUNTRY_MATCH"
NO_CITY_MATCH = "NO_CITY_MATCH"
CITY_REQUIRED = "CITY_REQUIRED"

UNAVAILABILITY_MESSAGES = {
    NO_COUNTRY_MATCH: "Doesn't ship to your country",
    NO_CITY_MATCH: "Doesn't deliver to your city",
    CITY_REQUIRED: "Add your city to see if this store delivers to you",
}

NO_LOCATION_MESSAGE = "Set your shopping location to see available stores"
