"""ResultCache expiry, eviction and tag invalidation."""
from __future__ import annotations

from datetime import date

from tracker.constants.constants import MilestoneState
from tracker.services.ResultCache import ResultCache, make_cache_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_miss_then_hit() -> None:
    cache = ResultCache()
    assert cache.get("k") == (False, None)
    cache.put("k", {"v": 1}, ttl=10)
    assert cache.get("k") == (True, {"v": 1})
    assert cache.hits == 1
    assert cache.misses == 1


def test_entry_expires_after_ttl() -> None:
    clock = FakeClock()
    cache = ResultCache(clock=clock)
    cache.put("k", "value", ttl=5)
    clock.now += 4.9
    assert cache.get("k") == (True, "value")
    clock.now += 0.2
    assert cache.get("k") == (False, None)
    assert len(cache) == 0


def test_invalidate_tags_drops_only_tagged_entries() -> None:
    cache = ResultCache()
    cache.put("search-a", 1, ttl=60, tags=["project:1"])
    cache.put("search-b", 2, ttl=60, tags=["project:1", "group:10"])
    cache.put("search-c", 3, ttl=60, tags=["project:2"])
    cache.put("progress", 4, ttl=60, tags=["milestone:m1", "project:1"])

    removed = cache.invalidate_tags(["project:1"])

    assert removed == 3
    assert cache.get("search-c") == (True, 3)
    assert cache.get("search-b") == (False, None)


def test_invalidate_single_key() -> None:
    cache = ResultCache()
    cache.put("k", 1, ttl=60, tags=["milestone:m1"])
    assert cache.invalidate("k") is True
    assert cache.invalidate("k") is False
    assert cache.invalidate_tags(["milestone:m1"]) == 0


def test_capacity_evicts_expired_first_then_oldest() -> None:
    clock = FakeClock()
    cache = ResultCache(max_entries=3, clock=clock)
    cache.put("short", 1, ttl=1)
    cache.put("a", 2, ttl=100)
    cache.put("b", 3, ttl=100)
    clock.now += 2

    cache.put("c", 4, ttl=100)
    assert len(cache) == 3
    assert cache.get("a") == (True, 2)

    cache.put("d", 5, ttl=100)
    assert cache.get("a") == (False, None)
    assert cache.get("d") == (True, 5)


def test_non_positive_ttl_is_not_stored() -> None:
    cache = ResultCache()
    cache.put("k", 1, ttl=0)
    assert len(cache) == 0


def test_cache_key_is_canonical() -> None:
    first = make_cache_key("search", {"b": 2, "a": date(2024, 1, 1), "state": MilestoneState.active})
    second = make_cache_key("search", {"state": MilestoneState.active, "a": date(2024, 1, 1), "b": 2})
    other = make_cache_key("search", {"b": 3, "a": date(2024, 1, 1), "state": MilestoneState.active})
    assert first == second
    assert first != other
    assert first.startswith("search:")


def test_put_skipped_when_tag_invalidated_during_computation() -> None:
    cache = ResultCache()
    seen = cache.generations(["project:1", "milestone:m1"])

    cache.invalidate_tags(["project:1"])

    assert cache.put("search-a", "stale", ttl=60, tags=["project:1"], generations=seen) is False
    assert cache.get("search-a") == (False, None)


def test_put_kept_when_other_tags_invalidated() -> None:
    cache = ResultCache()
    seen = cache.generations(["project:1"])

    cache.invalidate_tags(["project:2"])

    assert cache.put("search-a", "fresh", ttl=60, tags=["project:1"], generations=seen) is True
    assert cache.get("search-a") == (True, "fresh")
