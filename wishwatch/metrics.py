from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from flask import Response, request
import time

import structlog

logger = structlog.get_logger("metrics")

# Price refresh metrics
refresh_runs_total = Counter("wishwatch_refresh_runs_total", "Price refresh runs", ["status"])

refresh_items_total = Counter(
    "wishwatch_refresh_items_total", "Items processed by price refresh", ["outcome"]
)  # updated | changed | unchanged | no_price | failed | timeout

refresh_duration_seconds = Histogram("wishwatch_refresh_duration_seconds", "Duration of a wishlist price refresh")

price_drops_total = Counter("wishwatch_price_drops_total", "Price drops detected")

# Alerting metrics
notifications_total = Counter(
    "wishwatch_notifications_total", "Notification decisions", ["kind", "outcome"]
)  # outcome: dispatched | suppressed_<gate> | failed

# Reservation metrics
reservations_total = Counter("wishwatch_reservations_total", "Guest reservation attempts", ["outcome"])

# API Metrics
api_request_duration_seconds = Histogram(
    "wishwatch_api_request_duration_seconds", "API request duration", ["endpoint", "method"]
)

api_requests_total = Counter(
    "wishwatch_api_requests_total", "Total API requests", ["endpoint", "method", "status_code"]
)


def init_metrics(app):
    @app.route("/api/metrics")
    def metrics():
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    @app.before_request
    def before_request():
        request.start_time = time.time()

    @app.after_request
    def after_request(response):
        duration = time.time() - getattr(request, "start_time", time.time())
        api_request_duration_seconds.labels(endpoint=request.endpoint or "unknown", method=request.method).observe(
            duration
        )
        api_requests_total.labels(
            endpoint=request.endpoint or "unknown", method=request.method, status_code=response.status_code
        ).inc()
        return response

    logger.info("metrics_initialized", path="/api/metrics")
