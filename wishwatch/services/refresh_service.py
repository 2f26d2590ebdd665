"""
Price refresh for a wishlist.

Extraction calls run in a bounded thread pool. Everything that touches the
database stays on the calling thread and is applied as results complete, so
ledger order follows completion order, not item order.
"""

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError, as_completed
import math
import time

import structlog

from wishwatch.constants import JOB_COMPLETED, JOB_FAILED
from wishwatch.exceptions import NotFoundException
from wishwatch.metrics import price_drops_total, refresh_duration_seconds, refresh_items_total, refresh_runs_total
from wishwatch.repositories.item_repository import ItemRepository
from wishwatch.repositories.price_record_repository import PriceRecordRepository
from wishwatch.repositories.refresh_job_repository import RefreshJobRepository
from wishwatch.repositories.wishlist_repository import WishlistRepository
from wishwatch.services.drop_detector import DropEvent, evaluate
from wishwatch.settings import load_settings
from wishwatch.utils import money_to_json, now_utc, to_money

logger = structlog.get_logger("refresh")

# Extra time granted to the whole batch on top of the per-item timeouts
DEADLINE_SLACK_SECONDS = 1.0


class RefreshResult:
    def __init__(self, job_id=None):
        self.job_id = job_id
        self.items_checked = 0
        self.items_updated = 0
        self.drop_events = []

    def counts(self):
        return {
            "items_checked": self.items_checked,
            "items_updated": self.items_updated,
            "drop_count": len(self.drop_events),
        }

    def to_dict(self):
        return {
            "job_id": self.job_id,
            "items_checked": self.items_checked,
            "items_updated": self.items_updated,
            "drop_events": [event.to_dict() for event in self.drop_events],
        }


class PriceRefreshService:
    def __init__(self, extractor, alert_service, settings=None):
        self.extractor = extractor
        self.alert_service = alert_service
        refresh = (settings or load_settings()).get("refresh", {})
        self.max_concurrency = max(1, int(refresh.get("max_concurrency", 5)))
        self.item_timeout = float(refresh.get("item_timeout_seconds", 20))

    def refresh_wishlist(self, user_id, wishlist_id):
        """
        Re-check every item of the wishlist that has a source URL.

        Ownership is checked before any work; a wishlist that does not exist
        and one owned by someone else both raise NotFoundException. A single
        item's extraction failure never aborts the batch.
        """
        wishlist = WishlistRepository.get_by_user_and_id(user_id, wishlist_id)
        if wishlist is None:
            raise NotFoundException("Wishlist not found")

        items = ItemRepository.get_trackable(wishlist.id)
        job = RefreshJobRepository.start(user_id, wishlist.id, len(items))
        result = RefreshResult(job_id=job.id)
        started = time.time()
        logger.info("price_refresh_started", user_id=user_id, wishlist_id=wishlist.id, items=len(items), job_id=job.id)

        try:
            self._refresh_items(user_id, items, result)
        except Exception as e:
            RefreshJobRepository.finish(job, JOB_FAILED, error=str(e), **result.counts())
            refresh_runs_total.labels(status=JOB_FAILED).inc()
            logger.error("price_refresh_failed", wishlist_id=wishlist.id, job_id=job.id, error=str(e))
            raise

        RefreshJobRepository.finish(job, JOB_COMPLETED, **result.counts())
        refresh_runs_total.labels(status=JOB_COMPLETED).inc()
        refresh_duration_seconds.observe(time.time() - started)
        logger.info(
            "price_refresh_completed",
            wishlist_id=wishlist.id,
            job_id=job.id,
            duration=round(time.time() - started, 3),
            **result.counts(),
        )
        return result

    def _extract(self, url):
        return self.extractor.extract(url, self.item_timeout)

    def _refresh_items(self, user_id, items, result):
        if not items:
            return

        workers = min(self.max_concurrency, len(items))
        deadline = self.item_timeout * math.ceil(len(items) / workers) + DEADLINE_SLACK_SECONDS
        items_by_id = {item.id: item for item in items}

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="price-refresh")
        try:
            futures = {executor.submit(self._extract, item.source_url): item.id for item in items}
            pending = set(futures)
            try:
                for future in as_completed(futures, timeout=deadline):
                    pending.discard(future)
                    item = items_by_id[futures[future]]
                    try:
                        extracted = future.result()
                    except Exception as e:
                        logger.warning("price_extraction_failed", item_id=item.id, url=item.source_url, error=str(e))
                        self._apply(user_id, item, None, result, outcome="failed")
                        continue
                    self._apply(user_id, item, extracted, result, outcome="no_price")
            except FuturesTimeoutError:
                for future in pending:
                    future.cancel()
                    item = items_by_id[futures[future]]
                    logger.warning("price_extraction_timeout", item_id=item.id, timeout=self.item_timeout)
                    self._apply(user_id, item, None, result, outcome="timeout")
        finally:
            # Hung extractor threads are abandoned, not joined
            executor.shutdown(wait=False, cancel_futures=True)

    def _apply(self, user_id, item, extracted, result, outcome="failed"):
        """Persist one extraction outcome and raise the follow-up alerts"""
        now = now_utc()
        result.items_checked += 1

        if extracted is None or extracted.price is None:
            item.last_checked_at = now
            ItemRepository.save(item)
            refresh_items_total.labels(outcome=outcome).inc()
            return

        new_price = to_money(extracted.price)
        currency = extracted.currency or item.currency
        old_price = to_money(item.current_price)

        PriceRecordRepository.append(item.id, new_price, currency, recorded_at=now, commit=False)
        drop = evaluate(old_price, new_price)
        # Only a first price or a drop counts as an update; an increase is recorded silently
        updated = old_price is None or drop.is_drop
        changed = old_price != new_price or currency != item.currency

        item.current_price = new_price
        item.currency = currency
        item.last_checked_at = now
        ItemRepository.save(item)

        if updated:
            result.items_updated += 1
            refresh_items_total.labels(outcome="updated").inc()
        else:
            refresh_items_total.labels(outcome="changed" if changed else "unchanged").inc()

        if drop.is_drop:
            event = DropEvent(item.id, item.title, old_price, new_price, drop.pct_change, currency)
            result.drop_events.append(event)
            price_drops_total.inc()
            logger.info(
                "price_drop_detected",
                item_id=item.id,
                old_price=money_to_json(old_price),
                new_price=money_to_json(new_price),
                pct_change=float(drop.pct_change),
            )
            try:
                self.alert_service.notify_if_allowed(user_id, event)
            except Exception as e:
                logger.error("price_drop_notification_failed", item_id=item.id, error=str(e))

        try:
            self.alert_service.check_target(user_id, item)
        except Exception as e:
            logger.error("target_price_check_failed", item_id=item.id, error=str(e))

    def job_status(self, user_id, job_id):
        job = RefreshJobRepository.get_for_user(user_id, job_id)
        if job is None:
            raise NotFoundException("Refresh job not found")
        return job.to_dict()

    def price_drop_info(self, user_id, item_id):
        """Compare the current price to the first observed one"""
        item = ItemRepository.get_for_user(user_id, item_id)
        if item is None:
            raise NotFoundException("Item not found")

        current = to_money(item.current_price)
        oldest = PriceRecordRepository.oldest(item.id)
        original = to_money(oldest.price) if oldest else current

        price_dropped = False
        pct_change = None
        if oldest is not None and current is not None and original > 0:
            drop = evaluate(original, current)
            price_dropped = drop.is_drop
            pct_change = float(drop.pct_change)

        return {
            "item_id": item.id,
            "price_dropped": price_dropped,
            "original_price": money_to_json(original),
            "current_price": money_to_json(current),
            "percentage_change": pct_change,
            "currency": item.currency,
        }

    def price_history(self, user_id, item_id, limit=None):
        item = ItemRepository.get_for_user(user_id, item_id)
        if item is None:
            raise NotFoundException("Item not found")
        records = PriceRecordRepository.history(item.id, limit=limit)
        return {"item_id": item.id, "count": len(records), "history": [record.to_dict() for record in records]}
