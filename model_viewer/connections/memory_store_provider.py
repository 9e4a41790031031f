from typing import Dict, Optional

from model_viewer.domain.interfaces import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """
    For testing and local development.
    Lives as long as the process.
    """

    def __init__(self):
        self.items: Dict[str, str] = {}

    async def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)
