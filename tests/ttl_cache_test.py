import asyncio
import json

import pytest

from model_viewer.connections.file_store_provider import JsonFileKeyValueStore
from model_viewer.connections.memory_store_provider import InMemoryKeyValueStore
from model_viewer.services.ttl_cache import TtlCache


@pytest.mark.asyncio
async def test_value_is_returned_until_ttl_elapses(clock):
    store = InMemoryKeyValueStore()
    cache = TtlCache(store, clock=clock)

    await cache.set("token", {"token": "abc"}, ttl_ms=1000)

    clock.advance(999)
    assert await cache.get("token") == {"token": "abc"}

    clock.advance(2)
    assert await cache.get("token") is None

    # Expired entries are evicted on read
    assert "token" not in store.items


@pytest.mark.asyncio
async def test_set_overwrites_previous_value(clock):
    cache = TtlCache(InMemoryKeyValueStore(), clock=clock)

    await cache.set("token", "first", ttl_ms=60_000)
    await cache.set("token", "second", ttl_ms=60_000)

    assert await cache.get("token") == "second"


@pytest.mark.asyncio
async def test_missing_key_returns_none(clock):
    cache = TtlCache(InMemoryKeyValueStore(), clock=clock)
    assert await cache.get("nothing-here") is None


@pytest.mark.asyncio
async def test_unreadable_entry_is_dropped(clock):
    store = InMemoryKeyValueStore()
    store.items["token"] = "not json"
    cache = TtlCache(store, clock=clock)

    assert await cache.get("token") is None
    assert "token" not in store.items


@pytest.mark.asyncio
async def test_stored_record_holds_absolute_expiry(clock):
    store = InMemoryKeyValueStore()
    cache = TtlCache(store, clock=clock)

    await cache.set("token", "abc", ttl_ms=5000)

    record = json.loads(store.items["token"])
    assert record == {"value": "abc", "expiry": clock.now + 5000}


@pytest.mark.asyncio
async def test_json_file_store_persists_between_instances(tmp_path, clock):
    path = tmp_path / "cache" / "tokens.json"

    await TtlCache(JsonFileKeyValueStore(path), clock=clock).set("token", "abc", ttl_ms=60_000)

    reopened = TtlCache(JsonFileKeyValueStore(path), clock=clock)
    assert await reopened.get("token") == "abc"

    clock.advance(60_001)
    assert await reopened.get("token") is None
    assert json.loads(path.read_text()) == {}


@pytest.mark.asyncio
async def test_json_file_store_tolerates_corrupt_file(tmp_path):
    path = tmp_path / "tokens.json"
    path.write_text("{broken")

    store = JsonFileKeyValueStore(path)
    assert await store.get_item("token") is None

    await store.set_item("token", "value")
    assert await store.get_item("token") == "value"


@pytest.mark.asyncio
async def test_json_file_store_keeps_concurrent_writes(tmp_path):
    """
    Scenario: the SDK and viewer tokens are cached at the same moment.
    Expectation: neither write is lost.
    """
    path = tmp_path / "tokens.json"
    store = JsonFileKeyValueStore(path)

    await asyncio.gather(*(store.set_item(f"key-{i}", str(i)) for i in range(10)))

    assert json.loads(path.read_text()) == {f"key-{i}": str(i) for i in range(10)}
