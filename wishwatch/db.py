from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
import structlog

from wishwatch.utils import now_utc

# Retrieve main logger
logger = structlog.get_logger("main")

db = SQLAlchemy()


def init_db(app):
    with app.app_context():
        # Ensure foreign keys, WAL mode, and timeout are set when connection is opened
        @event.listens_for(db.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            import sqlite3

            if not isinstance(dbapi_connection, sqlite3.Connection):
                return

            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON;")
            # Enable WAL mode for better concurrent access
            cursor.execute("PRAGMA journal_mode=WAL;")
            # Guest reservations race on the same rows; wait instead of failing
            cursor.execute("PRAGMA busy_timeout=30000;")
            cursor.close()

        # Register every model on the metadata before create_all
        import wishwatch.models  # noqa: F401

        db.create_all()
        logger.info("database_initialized", uri=_redact_uri(str(db.engine.url)))


def _redact_uri(uri):
    if "@" not in uri:
        return uri
    scheme, rest = uri.split("://", 1)
    return f"{scheme}://***@{rest.split('@', 1)[1]}"


__all__ = ["db", "init_db", "now_utc"]
