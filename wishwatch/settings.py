import copy
import os

import pytz
import structlog
import yaml

from wishwatch.constants import CONFIG_FILE, DEFAULT_SETTINGS

logger = structlog.get_logger("settings")

# Cache variable
_cached_settings = None


def _deep_merge(base, overrides):
    merged = copy.deepcopy(base)
    for section, values in (overrides or {}).items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section] = _deep_merge(merged[section], values)
        else:
            merged[section] = values
    return merged


def load_settings(force=False, config_file=None):
    """
    Load settings from the YAML config file, deep-merged over DEFAULT_SETTINGS.
    The file is optional; a missing file means defaults only.
    """
    global _cached_settings

    if _cached_settings is not None and not force:
        return _cached_settings

    config_file = config_file or CONFIG_FILE
    settings = copy.deepcopy(DEFAULT_SETTINGS)

    if os.path.exists(config_file):
        logger.debug("reading_configuration_file", path=config_file)
        with open(config_file, "r") as yaml_file:
            file_settings = yaml.safe_load(yaml_file) or {}
        if not isinstance(file_settings, dict):
            raise ValueError(f"Configuration file {config_file} must contain a mapping")
        settings = _deep_merge(settings, file_settings)
    else:
        logger.debug("configuration_file_missing", path=config_file)

    _cached_settings = settings
    return settings


def apply_overrides(overrides):
    """Merge runtime overrides (e.g. from create_app) into the cached settings"""
    global _cached_settings
    _cached_settings = _deep_merge(load_settings(), overrides or {})
    return _cached_settings


def reset_settings():
    global _cached_settings
    _cached_settings = None


def verify_settings(settings):
    """Return (success, errors) for the sections the engine depends on"""
    errors = []

    refresh = settings.get("refresh", {})
    try:
        if int(refresh.get("max_concurrency", 0)) < 1:
            errors.append({"path": "refresh/max_concurrency", "error": "Must be at least 1."})
    except (TypeError, ValueError):
        errors.append({"path": "refresh/max_concurrency", "error": "Must be an integer."})
    try:
        if float(refresh.get("item_timeout_seconds", 0)) <= 0:
            errors.append({"path": "refresh/item_timeout_seconds", "error": "Must be positive."})
    except (TypeError, ValueError):
        errors.append({"path": "refresh/item_timeout_seconds", "error": "Must be a number."})

    alerts = settings.get("alerts", {})
    timezone = alerts.get("default_timezone")
    if timezone and (not isinstance(timezone, str) or timezone not in pytz.all_timezones_set):
        errors.append({"path": "alerts/default_timezone", "error": "Must be an IANA timezone name."})
    for key in ("dedupe_window_hours", "significant_drop_pct"):
        value = alerts.get(key, 0)
        if isinstance(value, bool):
            errors.append({"path": f"alerts/{key}", "error": "Must be a number."})
            continue
        try:
            if float(value) < 0:
                errors.append({"path": f"alerts/{key}", "error": "Must not be negative."})
        except (TypeError, ValueError):
            errors.append({"path": f"alerts/{key}", "error": "Must be a number."})

    notifier = settings.get("notifier", {})
    if notifier.get("type") not in ("log", "webhook"):
        errors.append({"path": "notifier/type", "error": "Must be 'log' or 'webhook'."})
    elif notifier.get("type") == "webhook" and not notifier.get("webhook_url"):
        errors.append({"path": "notifier/webhook_url", "error": "Required for the webhook notifier."})

    return not errors, errors
