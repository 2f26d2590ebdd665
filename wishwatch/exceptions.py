"""
Wishwatch - Custom Exceptions and Exception Handlers
"""
import structlog
from werkzeug.exceptions import HTTPException

from wishwatch.api_responses import ErrorCode, error_response

logger = structlog.get_logger('exceptions')


class WishwatchException(Exception):
    """Base exception for Wishwatch"""
    status_code = 400

    def __init__(self, message: str, code: str = ErrorCode.VALIDATION_ERROR, details: str = None):
        self.message = message
        self.code = code
        self.details = details
        super().__init__(message)

    def to_dict(self):
        body = {
            'error': self.message,
            'code': self.code,
        }
        if self.details:
            body['details'] = self.details
        return body


class ValidationException(WishwatchException):
    """Invalid input or violated precondition"""
    status_code = 400

    def __init__(self, message: str, details: str = None):
        super().__init__(message, code=ErrorCode.VALIDATION_ERROR, details=details)
        logger.warning("validation_error", message=message, details=details)


class AuthenticationException(WishwatchException):
    """Authentication-related exceptions"""
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code=ErrorCode.UNAUTHORIZED)
        logger.warning("authentication_error", message=message)


class NotFoundException(WishwatchException):
    """Missing resource, or a resource owned by someone else"""
    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, code=ErrorCode.NOT_FOUND)
        logger.info("not_found", message=message)


class ConflictException(WishwatchException):
    """State conflict, e.g. an item that is already reserved"""
    status_code = 409

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message, code=ErrorCode.CONFLICT)
        logger.info("conflict", message=message)


class ExternalServiceException(WishwatchException):
    """Extraction adapter / notifier failures. Batch code counts these instead of raising."""
    status_code = 502

    def __init__(self, message: str, details: str = None):
        super().__init__(message, code=ErrorCode.EXTERNAL_SERVICE_ERROR, details=details)
        logger.warning("external_service_error", message=message, details=details)


class StorageException(WishwatchException):
    """Database-related exceptions. Callers only ever see a generic message."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__("A storage error occurred", code=ErrorCode.INTERNAL_ERROR)
        self.internal_message = message
        logger.error("storage_error", message=message)


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return error_response(
            error_code=e.name.upper().replace(' ', '_'),
            message=e.description,
            status_code=e.code,
            log_error=False,
        )

    @app.errorhandler(WishwatchException)
    def handle_wishwatch_exception(e):
        """Handle Wishwatch custom exceptions, each subclass carries its status"""
        return error_response(
            error_code=e.code,
            message=e.message,
            details=e.details,
            status_code=e.status_code,
            log_error=False,
        )

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error("unhandled_exception", error=str(e), exc_info=True)
        return error_response(
            error_code=ErrorCode.INTERNAL_ERROR,
            message='An unexpected error occurred',
            status_code=500,
            log_error=False,
        )
