"""
Per-request service construction from the collaborators registered on the app
"""

from flask import current_app

from wishwatch.services.alert_service import AlertService
from wishwatch.services.refresh_service import PriceRefreshService
from wishwatch.settings import load_settings

EXTRACTOR_KEY = "wishwatch.extractor"
NOTIFIER_KEY = "wishwatch.notifier"


def get_alert_service():
    return AlertService(current_app.extensions[NOTIFIER_KEY], load_settings())


def get_refresh_service():
    settings = load_settings()
    alert_service = AlertService(current_app.extensions[NOTIFIER_KEY], settings)
    return PriceRefreshService(current_app.extensions[EXTRACTOR_KEY], alert_service, settings)
