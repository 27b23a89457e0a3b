"""Storage for derived filter options, keyed by store backend and sample size.

Product pages are never cached. Only the category and color option lists are,
because deriving them scans a sample of records and they change slowly. Redis
is used when reachable; otherwise options live in process memory.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

import redis

from .config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "catalog:filter-options"
OPTION_GROUPS = ("categories", "colors")

FilterOptions = Dict[str, List[Dict[str, Any]]]


class OptionsCache(Protocol):
    def load(self, backend: str, sample_size: int) -> Optional[FilterOptions]: ...

    def save(self, backend: str, sample_size: int, options: FilterOptions, ttl: int) -> None: ...


def options_key(backend: str, sample_size: int) -> str:
    return f"{KEY_PREFIX}:{backend}:{sample_size}"


def is_filter_options(payload: Any) -> bool:
    """True when ``payload`` has a list of option mappings for every group."""
    if not isinstance(payload, dict):
        return False
    for group in OPTION_GROUPS:
        entries = payload.get(group)
        if not isinstance(entries, list) or not all(isinstance(entry, dict) for entry in entries):
            return False
    return True


@dataclass
class RedisOptionsCache:
    client: redis.Redis

    def load(self, backend: str, sample_size: int) -> Optional[FilterOptions]:
        key = options_key(backend, sample_size)
        try:
            data = self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("Filter options read failed for %s: %s", key, exc)
            return None
        if not data:
            return None
        try:
            payload = json.loads(data)
        except ValueError:
            payload = None
        if not is_filter_options(payload):
            logger.warning("Ignoring malformed filter options under %s", key)
            return None
        return payload

    def save(self, backend: str, sample_size: int, options: FilterOptions, ttl: int) -> None:
        key = options_key(backend, sample_size)
        try:
            self.client.setex(key, ttl, json.dumps(options))
        except redis.RedisError as exc:
            logger.warning("Filter options write failed for %s: %s", key, exc)


class MemoryOptionsCache:
    def __init__(self, clock=time.monotonic) -> None:
        self._entries: Dict[Tuple[str, int], Tuple[float, FilterOptions]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def load(self, backend: str, sample_size: int) -> Optional[FilterOptions]:
        with self._lock:
            entry = self._entries.get((backend, sample_size))
            if entry is None:
                return None
            expires_at, options = entry
            if expires_at <= self._clock():
                del self._entries[(backend, sample_size)]
                return None
            return options

    def save(self, backend: str, sample_size: int, options: FilterOptions, ttl: int) -> None:
        if ttl <= 0:
            return
        with self._lock:
            self._entries[(backend, sample_size)] = (self._clock() + ttl, options)


_options_cache: OptionsCache | None = None


def get_options_cache() -> OptionsCache:
    global _options_cache
    if _options_cache is not None:
        return _options_cache
    try:
        client = redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=False)
        client.ping()
        logger.info("Caching filter options in Redis at %s:%s", settings.redis_host, settings.redis_port)
        _options_cache = RedisOptionsCache(client)
    except redis.RedisError:
        logger.warning("Redis not available, caching filter options in memory")
        _options_cache = MemoryOptionsCache()
    return _options_cache
