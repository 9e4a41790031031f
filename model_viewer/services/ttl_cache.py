import json
import time
from typing import Any, Callable, Optional

import structlog

from model_viewer.domain.interfaces import KeyValueStore

logger = structlog.get_logger()


def now_ms() -> float:
    return time.time() * 1000


class TtlCache:
    """
    Stores JSON values with an absolute expiry in a KeyValueStore.
    Expiry is checked lazily: an expired entry is evicted on read.
    """

    def __init__(self, store: KeyValueStore, clock: Callable[[], float] = now_ms):
        self.store = store
        self.clock = clock

    async def set(self, key: str, value: Any, ttl_ms: float) -> None:
        item = {"value": value, "expiry": self.clock() + ttl_ms}
        await self.store.set_item(key, json.dumps(item))

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.store.get_item(key)

        if not raw:
            return None

        try:
            item = json.loads(raw)
            expiry = float(item["expiry"])
        except (ValueError, KeyError, TypeError):
            logger.warning("cache_entry_unreadable", key=key)
            await self.store.remove_item(key)
            return None

        if self.clock() > expiry:
            logger.debug("cache_entry_expired", key=key)
            await self.store.remove_item(key)
            return None

        return item.get("value")
