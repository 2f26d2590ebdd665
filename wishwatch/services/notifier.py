"""
Notification dispatch.

Dispatch is fire-and-forget: implementations log failures and report them
through the return value, they never raise to the caller.
"""

import hashlib
import hmac
import json

import requests
import structlog

from wishwatch.db import now_utc
from wishwatch.utils import sanitize_sensitive_data

logger = structlog.get_logger("notifier")

SIGNATURE_HEADER = "X-Wishwatch-Signature"


class Notifier:
    def dispatch(self, user_id, kind, payload):
        """Deliver one notification. Returns True when it was handed off."""
        raise NotImplementedError


class LogNotifier(Notifier):
    """Writes notifications to the log only"""

    def dispatch(self, user_id, kind, payload):
        logger.info("notification_dispatched", user_id=user_id, kind=kind, payload=payload)
        return True


class WebhookNotifier(Notifier):
    def __init__(self, url, secret=None, timeout=5):
        self.url = url
        self.secret = secret
        self.timeout = timeout
        self.session = requests.Session()

    def sign(self, body):
        return hmac.new(self.secret.encode(), body.encode(), hashlib.sha256).hexdigest()

    def dispatch(self, user_id, kind, payload):
        envelope = {
            "event": kind,
            "user_id": user_id,
            "timestamp": now_utc().isoformat(),
            "data": payload,
        }
        body = json.dumps(envelope, sort_keys=True)
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers[SIGNATURE_HEADER] = self.sign(body)

        try:
            response = self.session.post(self.url, data=body, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(
                "notification_dispatch_failed",
                user_id=user_id,
                kind=kind,
                url=self.url,
                error=str(e),
                headers=sanitize_sensitive_data(headers, [SIGNATURE_HEADER.lower()]),
            )
            return False

        logger.info("notification_dispatched", user_id=user_id, kind=kind, status=response.status_code)
        return True


def build_notifier(settings):
    config = settings.get("notifier", {})
    if config.get("type") == "webhook":
        return WebhookNotifier(
            config.get("webhook_url"),
            secret=config.get("secret") or None,
            timeout=float(config.get("timeout_seconds", 5)),
        )
    return LogNotifier()
