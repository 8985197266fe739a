# storefront/auth.py
"""
Session gate for the /admin prefix. The admin itself lives elsewhere; this
only decides who gets redirected where.
"""
import logging
from typing import Optional

import redis

logger = logging.getLogger("storefront.auth")

ADMIN_PREFIX = "/admin"
ADMIN_HOME = "/admin"
ADMIN_LOGIN = "/admin/login"
SESSION_COOKIE = "sf_admin_session"


def admin_redirect(path: str, authenticated: bool) -> Optional[str]:
    """Where to send a request for `path`, or None to let it through."""
    if path == ADMIN_LOGIN:
        return ADMIN_HOME if authenticated else None
    if path == ADMIN_PREFIX or path.startswith(ADMIN_PREFIX + "/"):
        return None if authenticated else ADMIN_LOGIN
    return None


class SessionStore:
    """Admin session tokens kept in redis as admin_session:<token>."""

    def __init__(self, client):
        self.client = client

    @staticmethod
    def key(token: str) -> str:
        return f"admin_session:{token}"

    def is_active(self, token: Optional[str]) -> bool:
        if not token or self.client is None:
            return False
        try:
            return bool(self.client.exists(self.key(token)))
        except redis.RedisError:
            logger.error("Session lookup failed; treating request as anonymous", exc_info=True)
            return False
