"""
Price extraction adapters.

The refresh workflow only needs `extract(url, timeout)`; turning a product
page into a price happens in an external service reached over HTTP.
"""

from collections import namedtuple

import requests
import structlog

from wishwatch.constants import DEFAULT_CURRENCY
from wishwatch.exceptions import ExternalServiceException
from wishwatch.utils import to_money

logger = structlog.get_logger("extraction")

ExtractedPrice = namedtuple("ExtractedPrice", ["price", "currency"])


class PriceExtractor:
    """Interface: return an ExtractedPrice, or None when no price is available this cycle"""

    def extract(self, url, timeout):
        raise NotImplementedError


class HttpPriceExtractor(PriceExtractor):
    """Client for an HTTP extraction service: POST {"url": ...} -> {"price": ..., "currency": ...}"""

    def __init__(self, endpoint, api_key=None):
        self.endpoint = endpoint
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": "Wishwatch price refresh", "Accept": "application/json"})
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"

    def extract(self, url, timeout):
        if not self.endpoint:
            raise ExternalServiceException("Price extraction endpoint is not configured")

        try:
            response = self.session.post(self.endpoint, json={"url": url}, timeout=timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise ExternalServiceException("Price extraction request failed", details=str(e))
        except ValueError as e:
            raise ExternalServiceException("Price extraction returned invalid JSON", details=str(e))

        if not isinstance(data, dict) or data.get("price") is None:
            logger.debug("no_price_extracted", url=url)
            return None

        try:
            price = to_money(data["price"])
        except ValueError as e:
            raise ExternalServiceException("Price extraction returned an invalid price", details=str(e))
        if price < 0:
            raise ExternalServiceException("Price extraction returned an invalid price", details=str(price))

        return ExtractedPrice(price, (data.get("currency") or DEFAULT_CURRENCY).upper())


def build_extractor(settings):
    extraction = settings.get("extraction", {})
    return HttpPriceExtractor(extraction.get("endpoint"), extraction.get("api_key"))
