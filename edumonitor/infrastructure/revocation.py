"""Denylist of logged-out access tokens, kept in Redis until the token expires."""
import time
from typing import Optional

import redis
import structlog

from ..config import settings

logger = structlog.get_logger()

_redis_client: Optional[redis.Redis] = None

def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
    return _redis_client

def _key(jti: str) -> str:
    return f"revoked:{jti}"

def revoke_token(jti: str, exp: float) -> bool:
    """Mark a token as logged out until its expiry timestamp."""
    ttl = int(exp - time.time())
    if ttl <= 0:
        return True
    try:
        get_redis().setex(_key(jti), ttl, "1")
        return True
    except Exception as e:
        # Redis unavailable: the token stays valid until it expires
        logger.warning("token_revocation_failed", jti=jti, error=str(e))
        return False

def is_token_revoked(jti: str) -> bool:
    try:
        return bool(get_redis().exists(_key(jti)))
    except Exception:
        return False
