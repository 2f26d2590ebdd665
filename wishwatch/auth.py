"""
Bearer token authentication on top of Flask-Login.
Tokens are provisioned elsewhere; this module only resolves them to a user.
"""

from flask_login import LoginManager
from sqlalchemy.exc import SQLAlchemyError
import structlog

from wishwatch.db import db, now_utc
from wishwatch.exceptions import AuthenticationException
from wishwatch.models import ApiToken, User

logger = structlog.get_logger("auth")

login_manager = LoginManager()


def check_api_token(request):
    """
    Resolve the Bearer token in the Authorization header to its user.
    Returns: (success, error, user_object)
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return False, "Missing or invalid token", None

    token_str = auth_header.split(" ", 1)[1].strip()
    if not token_str:
        return False, "Missing or invalid token", None

    token = ApiToken.query.filter_by(token=token_str).first()
    if not token:
        return False, "Invalid token", None

    try:
        token.last_used = now_utc()
        db.session.commit()
    except SQLAlchemyError as e:
        # A stale last_used is not a reason to reject the request
        db.session.rollback()
        logger.warning("token_last_used_update_failed", token_id=token.id, error=str(e))

    return True, None, token.user


@login_manager.user_loader
def load_user(user_id):
    """Load user for Flask-Login"""
    return db.session.get(User, int(user_id))


@login_manager.request_loader
def load_user_from_request(request):
    success, _, user = check_api_token(request)
    return user if success else None


@login_manager.unauthorized_handler
def unauthorized_json():
    raise AuthenticationException()
