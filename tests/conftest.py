"""
Pytest fixtures and configuration for Wishwatch tests
"""
import itertools
import secrets
import threading
from decimal import Decimal

import pytest

from wishwatch.app import create_app
from wishwatch.db import db
from wishwatch.models import ApiToken, User
from wishwatch.repositories.item_repository import ItemRepository
from wishwatch.repositories.shared_wishlist_repository import SharedWishlistRepository
from wishwatch.repositories.wishlist_repository import WishlistRepository
from wishwatch.services.alert_service import AlertService
from wishwatch.services.extraction import ExtractedPrice, PriceExtractor
from wishwatch.services.factory import EXTRACTOR_KEY, NOTIFIER_KEY
from wishwatch.services.notifier import Notifier
from wishwatch.services.refresh_service import PriceRefreshService
from wishwatch.settings import load_settings, reset_settings


class FakeExtractor(PriceExtractor):
    """Answers from a url -> response table. A response may be an
    ExtractedPrice, None, an exception instance, or a callable(url, timeout)."""

    def __init__(self):
        self.responses = {}
        self.calls = []
        self._lock = threading.Lock()

    def set_price(self, url, price, currency="USD"):
        self.responses[url] = ExtractedPrice(Decimal(str(price)), currency)

    def extract(self, url, timeout):
        with self._lock:
            self.calls.append(url)
        response = self.responses.get(url)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(url, timeout)
        return response


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent = []
        self.fail = False

    def dispatch(self, user_id, kind, payload):
        if self.fail:
            return False
        self.sent.append((user_id, kind, payload))
        return True

    def kinds(self):
        return [kind for _, kind, _ in self.sent]


@pytest.fixture
def app_config(tmp_path):
    """Settings overrides for a test app on a throwaway SQLite file"""
    return {
        "database": {"uri": f"sqlite:///{tmp_path / 'wishwatch-test.db'}"},
        "refresh": {"max_concurrency": 3, "item_timeout_seconds": 2},
        "notifier": {"type": "log"},
        "alerts": {"default_timezone": "UTC", "dedupe_window_hours": 24, "significant_drop_pct": 5},
        "reservations": {"rate_limit_enabled": False},
    }


@pytest.fixture
def app(app_config):
    _app = create_app(app_config)
    _app.config.update({"TESTING": True})
    _app.extensions[EXTRACTOR_KEY] = FakeExtractor()
    _app.extensions[NOTIFIER_KEY] = RecordingNotifier()

    with _app.app_context():
        yield _app
        db.session.remove()
        db.engine.dispose()
    reset_settings()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def extractor(app):
    return app.extensions[EXTRACTOR_KEY]


@pytest.fixture
def notifier(app):
    return app.extensions[NOTIFIER_KEY]


@pytest.fixture
def alert_service(app, notifier):
    return AlertService(notifier, load_settings())


@pytest.fixture
def refresh_service(app, extractor, alert_service):
    return PriceRefreshService(extractor, alert_service, load_settings())


@pytest.fixture
def make_user(app):
    """Create a user with an API token; returns (user, auth headers)"""
    counter = itertools.count(1)

    def _make_user(username=None):
        user = User(username=username or f"user{next(counter)}")
        db.session.add(user)
        db.session.flush()
        token = ApiToken(user_id=user.id, token=secrets.token_hex(16), name="tests")
        db.session.add(token)
        db.session.commit()
        return user, {"Authorization": f"Bearer {token.token}"}

    return _make_user


@pytest.fixture
def make_wishlist(app):
    def _make_wishlist(user, name="Birthday", items=()):
        wishlist = WishlistRepository.create(user_id=user.id, name=name)
        created = [ItemRepository.create(wishlist_id=wishlist.id, **fields) for fields in items]
        return wishlist, created

    return _make_wishlist


@pytest.fixture
def share(app):
    def _share(wishlist, slug="share-abc", **options):
        return SharedWishlistRepository.create(wishlist_id=wishlist.id, share_slug=slug, **options)

    return _share
