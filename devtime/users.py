"""API-token lookup for the ingestion calls, plus user provisioning."""

import logging
import secrets
import sqlite3

from .db import get_conn, transaction
from .errors import AuthenticationError
from .timeutil import now_iso

logger = logging.getLogger(__name__)


def authenticate(token: str | None) -> sqlite3.Row:
    """Resolve an API token to its user or raise AuthenticationError."""
    if not token:
        raise AuthenticationError("Unauthorized")
    user = get_conn().execute(
        "SELECT * FROM users WHERE api_token=?", (token,)
    ).fetchone()
    if user is None:
        logger.warning("Rejected sync with unknown API token")
        raise AuthenticationError("Invalid Token")
    return user


def get_user(user_id: int) -> sqlite3.Row:
    user = get_conn().execute("SELECT * FROM users WHERE id=?", (user_id,)).fetchone()
    if user is None:
        raise AuthenticationError("Unauthorized")
    return user


def create_user(email: str, name: str | None = None) -> sqlite3.Row:
    token = secrets.token_urlsafe(32)
    with transaction() as conn:
        cur = conn.execute(
            "INSERT INTO users(email, name, api_token, created_at) VALUES(?, ?, ?, ?)",
            (email, name, token, now_iso()),
        )
        user_id = cur.lastrowid
    logger.info("Created user %s (id=%s)", email, user_id)
    return get_user(user_id)
