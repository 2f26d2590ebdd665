"""
API Response Utilities - Standardized error handling and responses
"""

from functools import wraps

from flask import jsonify, request
import structlog

logger = structlog.get_logger(__name__)


# API Error Codes
class ErrorCode:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    CONFLICT = "CONFLICT"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


DEFAULT_MESSAGES = {
    ErrorCode.NOT_FOUND: "Resource not found",
    ErrorCode.VALIDATION_ERROR: "Invalid request parameters",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
    ErrorCode.UNAUTHORIZED: "Authentication required",
    ErrorCode.CONFLICT: "Resource conflict",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Rate limit exceeded",
}


def success_response(data=None, message=None, status_code=200):
    """
    Standard success body: {"success": true, "data"?: <data>, "message"?: <message>}
    """
    response = {"success": True}

    if data is not None:
        response["data"] = data

    if message:
        response["message"] = message

    return jsonify(response), status_code


def error_response(
    error_code=ErrorCode.INTERNAL_ERROR,
    message=None,
    details=None,
    status_code=400,
    log_error=True,
):
    """
    Standard error body: {"error": <message>, "code": <code>, "details"?: <details>}
    """
    response = {
        "error": message or DEFAULT_MESSAGES.get(error_code, "Request failed"),
        "code": error_code,
    }

    if details:
        response["details"] = details

    if log_error and error_code in [ErrorCode.INTERNAL_ERROR, ErrorCode.VALIDATION_ERROR]:
        logger.error("api_error", code=error_code, message=message, details=details, path=request.path)

    return jsonify(response), status_code


def validation_error_response(field, message):
    """
    Convenience function for validation errors
    """
    return error_response(
        ErrorCode.VALIDATION_ERROR,
        message=f"Validation failed for field: {field}",
        details=message,
        status_code=400,
    )


def handle_api_errors(f):
    """
    Decorator to standardize error handling for API endpoints.
    Domain exceptions pass through to the registered handlers; plain
    ValueError/KeyError from request parsing become 400s.
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ValueError as e:
            return error_response(ErrorCode.VALIDATION_ERROR, message=str(e), status_code=400)
        except KeyError as e:
            return error_response(
                ErrorCode.VALIDATION_ERROR, message=f"Missing required parameter: {str(e)}", status_code=400
            )

    return wrapper


def get_json_body():
    """Request JSON body as a dict; a non-object body is a validation error"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data
