"""
Key-Value Store
Persistence substrate for transcripts, analyses and digests: JSON records with a
time-to-live, plus sorted indexes scored by a number (call start time)
"""

import json
import logging
import threading
import time
from typing import Dict, Any, List, Optional, Callable, Tuple

import redis

from call_intelligence.exceptions import KeyValueStoreError

logger = logging.getLogger(__name__)


class KeyValueStore:
    """
    Contract shared by the Redis-backed store and the in-memory store

    Records are plain JSON-compatible dictionaries. Sorted indexes map string
    members to numeric scores; a member appears at most once per index.
    """

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: Optional[int] = None) -> None:
        raise NotImplementedError

    def zadd(self, index: str, member: str, score: float) -> None:
        raise NotImplementedError

    def zrange_by_score(self, index: str, min_score: float, max_score: float) -> List[str]:
        """Members with min_score <= score <= max_score, lowest score first"""
        raise NotImplementedError

    def zrevrange(self, index: str, start: int, stop: int) -> List[str]:
        """Members by rank, highest score first; stop is inclusive"""
        raise NotImplementedError

    def zcard(self, index: str) -> int:
        raise NotImplementedError


class RedisKeyValueStore(KeyValueStore):
    """
    Redis implementation (redis-py); every RedisError surfaces as KeyValueStoreError
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str, timeout: float = 5.0) -> "RedisKeyValueStore":
        """
        Build a store from a redis:// or rediss:// URL

        Args:
            url: Connection URL
            timeout: Socket connect/read timeout in seconds

        Returns:
            RedisKeyValueStore
        """
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout
        )
        logger.info("Redis key-value store configured")
        return cls(client)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = self.client.get(key)
        except redis.RedisError as e:
            raise KeyValueStoreError(f"GET {key} failed: {e}") from e

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise KeyValueStoreError(f"Corrupt record under {key}: {e}") from e

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: Optional[int] = None) -> None:
        try:
            self.client.set(key, json.dumps(value), ex=ttl_seconds)
        except redis.RedisError as e:
            raise KeyValueStoreError(f"SET {key} failed: {e}") from e

    def zadd(self, index: str, member: str, score: float) -> None:
        try:
            self.client.zadd(index, {member: score})
        except redis.RedisError as e:
            raise KeyValueStoreError(f"ZADD {index} failed: {e}") from e

    def zrange_by_score(self, index: str, min_score: float, max_score: float) -> List[str]:
        try:
            return list(self.client.zrangebyscore(index, min_score, max_score))
        except redis.RedisError as e:
            raise KeyValueStoreError(f"ZRANGEBYSCORE {index} failed: {e}") from e

    def zrevrange(self, index: str, start: int, stop: int) -> List[str]:
        try:
            return list(self.client.zrevrange(index, start, stop))
        except redis.RedisError as e:
            raise KeyValueStoreError(f"ZREVRANGE {index} failed: {e}") from e

    def zcard(self, index: str) -> int:
        try:
            return int(self.client.zcard(index))
        except redis.RedisError as e:
            raise KeyValueStoreError(f"ZCARD {index} failed: {e}") from e


class InMemoryKeyValueStore(KeyValueStore):
    """
    Process-local store with the same semantics as Redis for the operations above.
    Used for local development and as the substitutable store in tests.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self.clock = clock or time.time
        self._records: Dict[str, Tuple[str, Optional[float]]] = {}
        self._indexes: Dict[str, Dict[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            entry = self._records.get(key)
            if entry is None:
                return None

            payload, expires_at = entry
            if expires_at is not None and self.clock() >= expires_at:
                del self._records[key]
                return None

        return json.loads(payload)

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: Optional[int] = None) -> None:
        expires_at = self.clock() + ttl_seconds if ttl_seconds else None
        # Serialise so callers never share mutable state with the store
        payload = json.dumps(value)
        with self._lock:
            self._records[key] = (payload, expires_at)

    def ttl(self, key: str) -> Optional[float]:
        """Seconds until expiry, None for missing or persistent keys"""
        with self._lock:
            entry = self._records.get(key)
        if entry is None or entry[1] is None:
            return None
        return entry[1] - self.clock()

    def zadd(self, index: str, member: str, score: float) -> None:
        with self._lock:
            self._indexes.setdefault(index, {})[member] = score

    def _ordered(self, index: str) -> List[Tuple[str, float]]:
        members = self._indexes.get(index, {})
        return sorted(members.items(), key=lambda item: (item[1], item[0]))

    def zrange_by_score(self, index: str, min_score: float, max_score: float) -> List[str]:
        with self._lock:
            return [
                member for member, score in self._ordered(index)
                if min_score <= score <= max_score
            ]

    def zrevrange(self, index: str, start: int, stop: int) -> List[str]:
        with self._lock:
            ordered = list(reversed(self._ordered(index)))

        if stop < 0:
            stop = len(ordered) + stop
        return [member for member, _ in ordered[start:stop + 1]]

    def zcard(self, index: str) -> int:
        with self._lock:
            return len(self._indexes.get(index, {}))
