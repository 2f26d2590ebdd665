"""
Rate limiting for the unauthenticated guest endpoints
"""

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from wishwatch.api_responses import ErrorCode, error_response
from wishwatch.settings import load_settings

limiter = Limiter(key_func=get_remote_address, default_limits=[])


def guest_rate_limit():
    """Limit string for guest reservation calls, read at request time"""
    return load_settings().get("reservations", {}).get("rate_limit", "30 per minute")


def init_rate_limiting(app):
    limiter.init_app(app)

    @app.errorhandler(429)
    def rate_limit_exceeded(e):
        return error_response(
            error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
            message=f"Rate limit exceeded: {e.description}",
            status_code=429,
            log_error=False,
        )
