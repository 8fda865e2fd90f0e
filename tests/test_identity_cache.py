# ============================================================================
# RESOURCE IDENTITY CACHE TESTS
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Tests - Name -> ARN cache
# PURPOSE: Verify hit/miss/create behaviour and single-flight resolution
# CREATED: 16 OCT 2026
# ============================================================================
"""
Resource Identity Cache Tests

Run with:
    pytest tests/test_identity_cache.py -v
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from core.contracts import ServiceType
from infrastructure.identity_cache import ResourceIdentityCache

ORDERS_ARN = "arn:aws:sns:us-east-1:123456789012:orders"


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def lookup():
    return MagicMock(return_value=None)


@pytest.fixture
def create():
    return MagicMock(side_effect=lambda name: f"arn:aws:sns:us-east-1:123456789012:{name}")


@pytest.fixture
def cache(lookup, create):
    return ResourceIdentityCache(ServiceType.SNS, lookup=lookup, create=create)


# ============================================================================
# RESOLUTION
# ============================================================================

class TestResolve:

    def test_miss_without_create_returns_none(self, cache, lookup, create):
        assert cache.resolve("orders") is None
        lookup.assert_called_once_with("orders")
        create.assert_not_called()

    def test_absence_is_not_cached(self, cache, lookup):
        cache.resolve("orders")
        cache.resolve("orders")
        assert lookup.call_count == 2
        assert "orders" not in cache

    def test_lookup_hit_is_cached(self, cache, lookup):
        lookup.return_value = ORDERS_ARN
        assert cache.resolve("orders") == ORDERS_ARN
        assert cache.resolve("orders") == ORDERS_ARN
        lookup.assert_called_once_with("orders")
        assert cache.get("orders") == ORDERS_ARN

    def test_miss_with_create(self, cache, lookup, create):
        assert cache.resolve("orders", create_if_absent=True) == ORDERS_ARN
        lookup.assert_called_once_with("orders")
        create.assert_called_once_with("orders")
        assert len(cache) == 1

    def test_existing_resource_is_not_created(self, cache, lookup, create):
        lookup.return_value = ORDERS_ARN
        cache.resolve("orders", create_if_absent=True)
        create.assert_not_called()

    def test_same_identity_every_time(self, cache):
        first = cache.resolve("orders", create_if_absent=True)
        assert all(cache.resolve("orders") == first for _ in range(5))

    def test_create_without_create_function(self, lookup):
        cache = ResourceIdentityCache(ServiceType.SNS, lookup=lookup)
        with pytest.raises(ValueError):
            cache.resolve("orders", create_if_absent=True)

    def test_lookup_failure_propagates(self, cache, lookup):
        lookup.side_effect = RuntimeError("boom")
        with pytest.raises(RuntimeError):
            cache.resolve("orders")
        assert "orders" not in cache


class TestSeed:

    def test_seed_skips_lookup(self, cache, lookup):
        cache.seed("orders", ORDERS_ARN)
        assert cache.resolve("orders") == ORDERS_ARN
        lookup.assert_not_called()

    def test_get_never_calls_out(self, cache, lookup):
        assert cache.get("orders") is None
        lookup.assert_not_called()


class TestLookupWarning:

    def test_warns_once(self, cache, caplog):
        with caplog.at_level(logging.WARNING, logger="infrastructure.identity_cache"):
            cache.resolve("orders")
            cache.resolve("billing")
            cache.resolve("shipping")

        warnings = [r for r in caplog.records if "by name" in r.getMessage()]
        assert len(warnings) == 1
        assert "ARNs" in warnings[0].getMessage()


# ============================================================================
# CONCURRENCY
# ============================================================================

class TestSingleFlight:

    def test_concurrent_misses_look_up_once(self, create):
        calls = []
        lock = threading.Lock()

        def slow_lookup(name):
            with lock:
                calls.append(name)
            time.sleep(0.05)
            return None

        cache = ResourceIdentityCache(ServiceType.SNS, lookup=slow_lookup, create=create)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: cache.resolve("orders", create_if_absent=True), range(8)))

        assert set(results) == {ORDERS_ARN}
        assert calls == ["orders"]
        create.assert_called_once_with("orders")

    def test_different_names_resolve_independently(self, cache):
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(
                lambda name: cache.resolve(name, create_if_absent=True),
                ["a", "b", "c", "d"],
            ))
        assert len(set(results)) == 4
        assert len(cache) == 4

    def test_lock_set_does_not_grow_with_names(self, cache):
        locks_before = list(cache._name_locks)
        for i in range(500):
            cache.resolve(f"missing-{i}")

        assert cache._name_locks == locks_before
        assert len(cache) == 0

    def test_name_always_maps_to_same_lock(self, cache):
        assert cache._name_lock("orders") is cache._name_lock("orders")
