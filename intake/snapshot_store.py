"""
Redis-backed storage for in-progress form snapshots
Snapshots are written wholesale (last writer wins) under a stable key
"""
import logging
from typing import Any, Callable, Optional

from . import config
from .domain.intake.schemas import PersistedSnapshot
from .redis_client import get_redis_client

logger = logging.getLogger(__name__)


def snapshot_key(identifier: str) -> str:
    """Build the storage key for a session or user id"""
    return f"{config.SNAPSHOT_KEY_PREFIX}:{identifier}"


class SnapshotStore:
    """Redis key-value store with automatic serialization"""

    def __init__(self, client: Optional[Any] = None, ttl: Optional[int] = None):
        self.redis_client = client
        self.ttl = config.SNAPSHOT_TTL_SECONDS if ttl is None else ttl

    def _get_client(self):
        """Lazy load Redis client"""
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Snapshot store unavailable: {e}")
                return None
        return self.redis_client

    def _run(self, action: str, key: str, operation: Callable[[Any], Any], default):
        """Run a Redis call, logging failures and returning ``default`` instead of raising"""
        client = self._get_client()
        if not client:
            return default

        try:
            return operation(client)
        except Exception as e:
            logger.error(f"❌ Snapshot {action} error for {key}: {e}")
            return default

    def get(self, key: str) -> Optional[PersistedSnapshot]:
        """Get a snapshot, None when missing, unreadable or the store is down"""

        def read(client) -> Optional[PersistedSnapshot]:
            value = client.get(key)
            if not value:
                logger.debug(f"❌ Snapshot MISS: {key}")
                return None
            logger.debug(f"✅ Snapshot HIT: {key}")
            return PersistedSnapshot.model_validate_json(value)

        return self._run("get", key, read, None)

    def set(self, key: str, snapshot: PersistedSnapshot) -> bool:
        """Overwrite the snapshot stored under key"""

        def write(client) -> bool:
            client.setex(key, self.ttl, snapshot.model_dump_json())
            logger.debug(f"✅ Snapshot SET: {key} (TTL: {self.ttl}s)")
            return True

        return self._run("set", key, write, False)

    def delete(self, key: str) -> bool:
        """Delete the snapshot stored under key"""

        def remove(client) -> bool:
            client.delete(key)
            logger.debug(f"✅ Snapshot DELETE: {key}")
            return True

        return self._run("delete", key, remove, False)
