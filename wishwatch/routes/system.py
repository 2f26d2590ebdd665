"""
System Routes - health check
"""

import socket

from flask import Blueprint
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from wishwatch import __version__
from wishwatch.api_responses import success_response
from wishwatch.constants import BUILD_VERSION
from wishwatch.db import db, now_utc

system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.route("/health", methods=["GET"])
def health_check_api():
    """
    Health check endpoint for monitoring. 503 when the database is unreachable.
    """
    overall_status = "healthy"
    checks = {
        "timestamp": now_utc().isoformat(),
        "version": __version__,
        "build": BUILD_VERSION,
        "hostname": socket.gethostname(),
        "database": "unknown",
    }

    try:
        db.session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        db.session.rollback()
        checks["database"] = f"error: {str(e)}"
        overall_status = "unhealthy"

    status_code = 200 if overall_status == "healthy" else 503
    return success_response(data={"status": overall_status, "checks": checks}, status_code=status_code)
