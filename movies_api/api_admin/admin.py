import hmac
import re

from flask import Blueprint, current_app, request

from movies_api.core.errors import Unauthorized
from movies_api.core.http import get_cache, get_db, get_settings

admin_api = Blueprint("admin", __name__, url_prefix="/admin")

BEARER_PATTERN = re.compile(r"^Bearer +(.+)$")


def authenticate(authorization_header: str | None, expected_token: str | None):
    """
    Check a bearer token against the configured one.

    Args:
        authorization_header (str | None): Raw ``Authorization`` header.
        expected_token (str | None): Token from the ``AUTH_TOKEN`` setting.

    Raises:
        Unauthorized: When no token is configured, the header is missing or malformed, or the token differs.
    """
    if not expected_token:
        raise Unauthorized("Authentication is not configured")
    if not authorization_header:
        raise Unauthorized("Missing Authorization header")

    match = BEARER_PATTERN.match(authorization_header)
    if not match:
        raise Unauthorized("Authorization header is not a Bearer token")

    if not hmac.compare_digest(match.group(1).encode("utf-8"), expected_token.encode("utf-8")):
        raise Unauthorized("Invalid token")


@admin_api.route("/reset", methods=["POST"])
def reset():
    """
    Handle POST requests that remove every movie, character and person.

    Returns:
        tuple: Empty body with status 204.
    """
    authenticate(request.headers.get("Authorization"), get_settings().auth_token)

    db = get_db()
    db["characters"].delete_many({})
    db["movies"].delete_many({})
    db["people"].delete_many({})
    get_cache().invalidate()
    current_app.logger.warning("Database reset")
    return "", 204
