"""Tag-based caching in front of the engine's read paths.

Entries are stored together with the version token of every tag they carry.
Invalidating a tag replaces its version token, so entries recorded under the old
token stop matching without enumerating or deleting them. Because the versions
are read *before* the value is computed, a computation that races an
invalidation is stored under the superseded token and never served afterwards.

The cache is best-effort: when the backend is unreachable ``remember`` falls
back to computing directly and ``invalidate`` logs instead of raising.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable, Iterable, Sequence
from threading import Lock
from typing import Any, Final, Protocol, TypeVar

import redis

from infodot_engine.core.errors import DependencyUnavailableError
from infodot_engine.core.settings import Settings
from infodot_engine.models.subject import SubjectRef

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUESTION_LIST_TAG: Final[str] = "question-list"


class CacheBackend(Protocol):
    """Minimal key/value contract required by the coordinator."""

    def get_many(self, keys: Sequence[str]) -> list[str | None]: ...

    def set(self, key: str, value: str, ttl: int | None = None) -> None: ...

    def add(self, key: str, value: str) -> bool: ...

    def delete(self, key: str) -> None: ...

    def close(self) -> None: ...


class RedisCacheBackend:
    """Cache backend storing JSON strings in Redis."""

    def __init__(
        self,
        url: str | None = None,
        *,
        client: redis.Redis | None = None,
        socket_timeout: float = 0.5,
    ) -> None:
        if client is None:
            if url is None:
                raise ValueError("RedisCacheBackend requires a url or a client")
            client = redis.Redis.from_url(
                url,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
                decode_responses=True,
            )
        self._redis = client

    def _call(self, method: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return method(*args, **kwargs)
        except redis.RedisError as exc:
            raise DependencyUnavailableError(f"Redis cache unavailable: {exc}") from exc

    def get_many(self, keys: Sequence[str]) -> list[str | None]:
        if not keys:
            return []
        return list(self._call(self._redis.mget, list(keys)))

    def set(self, key: str, value: str, ttl: int | None = None) -> None:
        if ttl:
            self._call(self._redis.set, key, value, ex=int(ttl))
        else:
            self._call(self._redis.set, key, value)

    def add(self, key: str, value: str) -> bool:
        return bool(self._call(self._redis.set, key, value, nx=True))

    def delete(self, key: str) -> None:
        self._call(self._redis.delete, key)

    def close(self) -> None:
        self._redis.close()


class MemoryCacheBackend:
    """In-process backend for development and tests."""

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, float | None]] = {}
        self._lock = Lock()

    def _live(self, key: str, now: float) -> str | None:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and expires_at <= now:
            self._data.pop(key, None)
            return None
        return value

    def get_many(self, keys: Sequence[str]) -> list[str | None]:
        now = time.monotonic()
        with self._lock:
            return [self._live(key, now) for key in keys]

    def set(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = time.monotonic() + ttl if ttl else None
        with self._lock:
            self._data[key] = (value, expires_at)

    def add(self, key: str, value: str) -> bool:
        with self._lock:
            if self._live(key, time.monotonic()) is not None:
                return False
            self._data[key] = (value, None)
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def close(self) -> None:
        self.clear()


class CacheCoordinator:
    """Remember/invalidate facade shared by the stores.

    Constructed once per process and passed explicitly to every component that
    reads through it. A ``None`` backend disables caching entirely.
    """

    def __init__(
        self,
        backend: CacheBackend | None,
        *,
        prefix: str = "infodot",
        default_ttl: int = 3600,
    ) -> None:
        self.backend = backend
        self.prefix = prefix
        self.default_ttl = default_ttl

    @property
    def enabled(self) -> bool:
        return self.backend is not None

    def _entry_key(self, key: str) -> str:
        return f"{self.prefix}:entry:{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self.prefix}:tag:{tag}"

    def _tag_versions(self, tags: Sequence[str]) -> dict[str, str]:
        assert self.backend is not None
        tag_keys = [self._tag_key(tag) for tag in tags]
        current = self.backend.get_many(tag_keys)
        versions: dict[str, str] = {}
        for tag, tag_key, version in zip(tags, tag_keys, current, strict=True):
            if version is None:
                # First use (or eviction): seed a fresh token so stale entries never match.
                self.backend.add(tag_key, uuid.uuid4().hex)
                version = self.backend.get_many([tag_key])[0]
                if version is None:
                    raise DependencyUnavailableError(f"Could not initialise cache tag {tag}")
            versions[tag] = version
        return versions

    def remember(
        self,
        key: str,
        tags: Iterable[str],
        ttl: int | None,
        compute: Callable[[], T],
    ) -> T:
        """Return the cached value for ``key`` or compute, store and return it.

        Values must be JSON-serialisable; cached hits come back JSON-decoded.
        """
        if self.backend is None:
            return compute()

        tag_list = sorted(set(tags))
        entry_key = self._entry_key(key)
        try:
            versions = self._tag_versions(tag_list)
            raw = self.backend.get_many([entry_key])[0]
        except DependencyUnavailableError as exc:
            logger.warning("Cache read for %s degraded to direct compute: %s", key, exc)
            return compute()

        if raw is not None:
            try:
                entry = json.loads(raw)
            except ValueError:
                entry = None
            if isinstance(entry, dict) and entry.get("tags") == versions:
                return entry["value"]

        value = compute()
        payload = json.dumps({"tags": versions, "value": value})
        try:
            self.backend.set(entry_key, payload, ttl if ttl is not None else self.default_ttl)
        except DependencyUnavailableError as exc:
            logger.warning("Cache write for %s skipped: %s", key, exc)
        return value

    def invalidate(self, *tags: str) -> None:
        """Invalidate every entry carrying any of ``tags``. Never raises."""
        if self.backend is None:
            return
        for tag in dict.fromkeys(tags):
            try:
                self.backend.set(self._tag_key(tag), uuid.uuid4().hex)
            except DependencyUnavailableError as exc:
                logger.warning("Cache invalidation of tag %s failed: %s", tag, exc)

    def invalidate_subject(self, *subjects: SubjectRef) -> None:
        self.invalidate(*(subject.tag for subject in subjects))

    def forget(self, key: str) -> None:
        """Drop a single entry regardless of its tags."""
        if self.backend is None:
            return
        try:
            self.backend.delete(self._entry_key(key))
        except DependencyUnavailableError as exc:
            logger.warning("Cache forget of %s failed: %s", key, exc)

    def close(self) -> None:
        if self.backend is not None:
            self.backend.close()


def build_cache(config: Settings) -> CacheCoordinator:
    """Construct the cache coordinator selected by ``CACHE_DRIVER``."""
    backend: CacheBackend | None
    if config.cache_driver == "redis":
        backend = RedisCacheBackend(
            config.redis_url,
            socket_timeout=config.redis_socket_timeout_seconds,
        )
    elif config.cache_driver == "memory":
        backend = MemoryCacheBackend()
    else:
        backend = None
    return CacheCoordinator(
        backend,
        prefix=config.cache_prefix,
        default_ttl=config.cache_default_ttl_seconds,
    )
