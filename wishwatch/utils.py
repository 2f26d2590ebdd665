import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal("0.01")

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


# Custom logging formatter to support colors
class ColoredFormatter(logging.Formatter):
    # Define color codes
    COLORS = {
        'DEBUG': '\033[94m',   # Blue
        'INFO': '\033[92m',    # Green
        'WARNING': '\033[93m', # Yellow
        'ERROR': '\033[91m',   # Red
        'CRITICAL': '\033[95m' # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        return super().format(record)


def sanitize_sensitive_data(data, sensitive_keys=None):
    """
    Mask sensitive values (secrets, tokens, api keys) before logging.

    Args:
        data: Dictionary, list or other data to sanitize
        sensitive_keys: List of key fragments to mask (default: common sensitive keys)

    Returns:
        Sanitized copy of the data
    """
    if sensitive_keys is None:
        sensitive_keys = ['password', 'secret', 'api_key', 'apikey', 'token', 'authorization']

    if isinstance(data, dict):
        sanitized = {}
        for k, v in data.items():
            key_lower = str(k).lower()
            if any(sens in key_lower for sens in sensitive_keys):
                if isinstance(v, str) and len(v) > 4:
                    sanitized[k] = f"{v[:2]}***{v[-2:]}"
                elif v:
                    sanitized[k] = "***"
                else:
                    sanitized[k] = v
            elif isinstance(v, (dict, list)):
                sanitized[k] = sanitize_sensitive_data(v, sensitive_keys)
            else:
                sanitized[k] = v
        return sanitized

    elif isinstance(data, list):
        return [sanitize_sensitive_data(item, sensitive_keys) if isinstance(item, (dict, list)) else item for item in data]

    return data


def now_utc():
    """Returns current datetime in UTC (aware)"""
    return datetime.now(timezone.utc)


def ensure_utc(dt):
    """
    Ensure a datetime object is aware and in UTC.
    Naive datetimes (as returned by SQLite) are assumed to already be UTC.
    """
    if dt is None:
        return None

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt.replace('Z', '+00:00'))
        except (ValueError, TypeError, AttributeError):
            return None

    if not hasattr(dt, 'tzinfo'):
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def isoformat_utc(dt):
    dt = ensure_utc(dt)
    return dt.isoformat() if dt else None


def to_money(value):
    """
    Coerce a number or numeric string into a 2-decimal Decimal.
    Returns None for None; raises ValueError for anything non-numeric.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def money_to_json(value):
    """Decimal -> float for JSON responses (None stays None)"""
    if value is None:
        return None
    return float(to_money(value))


def normalize_city_name(city):
    """
    Normalize a city name for comparison: lowercase, trimmed,
    collapsed whitespace, punctuation stripped.
    """
    if not city:
        return ""
    normalized = re.sub(r"\s+", " ", city.lower().strip())
    normalized = re.sub(r"[^\w\s]", "", normalized)
    return normalized.strip()


def cities_match(city1, city2):
    if not city1 or not city2:
        return False
    return normalize_city_name(city1) == normalize_city_name(city2)


def is_valid_hhmm(value):
    return isinstance(value, str) and _HHMM_RE.match(value) is not None


def hhmm_to_minutes(value):
    """'HH:MM' -> minutes since midnight"""
    if not is_valid_hhmm(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)
