"""Process-local cache for search and progress results with tag-based invalidation."""

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional, Set, Tuple
from tracker.core.config import settings

logger = logging.getLogger(__name__)


def hash_key(key: str) -> str:
    """Hash the key using SHA-256."""
    return hashlib.sha256(key.encode()).hexdigest()


def make_cache_key(namespace: str, params: Dict[str, Any]) -> str:
    """Canonical key: sorted-key JSON of the parameters, hashed.

    Dates, enums and sets are serialized through ``str``/sorted lists so two
    logically equal queries always map to the same key.
    """
    canonical = json.dumps(params, sort_keys=True, separators=(",", ":"), default=_canonical_default)
    return f"{namespace}:{hash_key(canonical)}"


def _canonical_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if hasattr(value, "value"):
        return value.value
    return str(value)


@dataclass
class CacheEntry:
    value: Any
    expires_at: float
    tags: FrozenSet[str] = field(default_factory=frozenset)


class ResultCache:
    """
    Key -> value store with per-entry expiry and invalidation tags.

    - ``put`` stores a value for ``ttl`` seconds under a set of tags.
    - ``invalidate_tags`` drops every entry carrying any of the tags; writers
      call it so readers never rely on the TTL alone.
    - Every tag carries a generation bumped by ``invalidate_tags``. A reader
      takes ``generations(tags)`` before running its query and hands it to
      ``put``; the value is discarded if a write invalidated any tag in between.
    - Bounded by ``max_entries``: expired entries are purged first, then the
      oldest inserted entries are evicted.
    """

    def __init__(self, max_entries: int = 1024, clock=time.monotonic) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}
        self._tag_index: Dict[str, Set[str]] = {}
        self._generations: Dict[str, int] = {}
        self.max_entries = max_entries
        self._clock = clock
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Tuple[bool, Optional[Any]]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return False, None
            if entry.expires_at <= self._clock():
                self._drop(key)
                self.misses += 1
                return False, None
            self.hits += 1
            return True, entry.value

    def generations(self, tags: Iterable[str]) -> Dict[str, int]:
        """Snapshot of the invalidation generation of each tag."""
        with self._lock:
            return {tag: self._generations.get(tag, 0) for tag in tags}

    def put(
        self,
        key: str,
        value: Any,
        ttl: float,
        tags: Iterable[str] = (),
        generations: Optional[Dict[str, int]] = None,
    ) -> bool:
        """Store ``value``. Returns False when it was not stored."""
        if ttl <= 0:
            return False
        tag_set = frozenset(tags)
        with self._lock:
            if generations is not None and any(
                self._generations.get(tag, 0) != seen for tag, seen in generations.items()
            ):
                logger.info(f"⏭️ Skipped caching {key}: invalidated while it was computed")
                return False
            if key in self._entries:
                self._drop(key)
            elif len(self._entries) >= self.max_entries:
                self._make_room()
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl, tags=tag_set)
            for tag in tag_set:
                self._tag_index.setdefault(tag, set()).add(key)
            return True

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._drop(key)

    def invalidate_tags(self, tags: Iterable[str]) -> int:
        """Drop every entry carrying any of ``tags``. Returns how many were removed."""
        removed = 0
        with self._lock:
            for tag in set(tags):
                self._generations[tag] = self._generations.get(tag, 0) + 1
                for key in list(self._tag_index.get(tag, ())):
                    if self._drop(key):
                        removed += 1
        if removed:
            logger.info(f"🧹 Invalidated {removed} cached result(s) for tags {sorted(set(tags))}")
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._tag_index.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _drop(self, key: str) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        for tag in entry.tags:
            keys = self._tag_index.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._tag_index[tag]
        return True

    def _make_room(self) -> None:
        now = self._clock()
        for key in [k for k, e in self._entries.items() if e.expires_at <= now]:
            self._drop(key)
        while len(self._entries) >= self.max_entries:
            # dicts keep insertion order, so the first key is the oldest entry
            self._drop(next(iter(self._entries)))


result_cache: Optional[ResultCache] = None


def get_result_cache() -> ResultCache:
    """FastAPI dependency returning the process-wide cache."""
    global result_cache
    if result_cache is None:
        result_cache = ResultCache(max_entries=settings.CACHE_MAX_ENTRIES)
    return result_cache
