"""
Redis connection used by the snapshot store
"""

import logging
from typing import Optional

import redis

from . import config

logger = logging.getLogger(__name__)

# Shared by URL and host connections; snapshots are stored as JSON text
CONNECTION_OPTIONS = {
    "decode_responses": True,
    "socket_connect_timeout": 15,
    "socket_timeout": 30,
    "retry_on_timeout": True,
    "health_check_interval": 30,
}

redis_client: Optional[redis.Redis] = None


def mask_url(url: str) -> str:
    """Hide credentials of a redis:// URL for logging"""
    if "@" not in url:
        return "****"
    scheme, _, rest = url.partition("://")
    return f"{scheme}://****@{rest.rsplit('@', 1)[1]}"


def _connect() -> redis.Redis:
    if config.REDIS_URL:
        logger.info(f"📡 Using Redis URL connection: {mask_url(config.REDIS_URL)}")
        return redis.from_url(config.REDIS_URL, **CONNECTION_OPTIONS)

    logger.info(f"📡 Using Redis at {config.REDIS_HOST}:{config.REDIS_PORT} (db {config.REDIS_DB})")
    return redis.Redis(
        host=config.REDIS_HOST,
        port=config.REDIS_PORT,
        password=config.REDIS_PASSWORD,
        db=config.REDIS_DB,
        ssl=config.REDIS_SSL,
        **CONNECTION_OPTIONS,
    )


def get_redis_client() -> redis.Redis:
    """
    Get or create the Redis client
    Supports a REDIS_URL (managed Redis) or individual host settings
    """
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection for form snapshots...")
        client = _connect()

        try:
            client.ping()
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis: {e}")
            raise

        redis_client = client
        logger.info("Redis connected successfully")

    return redis_client


def close_redis_client() -> None:
    global redis_client

    if redis_client is not None:
        redis_client.close()
        redis_client = None
