import asyncio
import json
from pathlib import Path
from typing import Dict, Optional

import aiofiles
import structlog

from model_viewer.domain.interfaces import KeyValueStore

logger = structlog.get_logger()


class JsonFileKeyValueStore(KeyValueStore):
    """
    Persists all keys in one JSON object on disk so the cached token
    survives restarts.
    """

    def __init__(self, path: Path):
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Serializes read-modify-write cycles within the process
        self._lock = asyncio.Lock()

    async def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        async with aiofiles.open(self.path, "r") as f:
            raw = await f.read()

        if not raw.strip():
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("key_value_store_corrupt", path=str(self.path))
            return {}

        return data if isinstance(data, dict) else {}

    async def _write(self, data: Dict[str, str]) -> None:
        async with aiofiles.open(self.path, "w") as f:
            await f.write(json.dumps(data))

    async def get_item(self, key: str) -> Optional[str]:
        async with self._lock:
            return (await self._read()).get(key)

    async def set_item(self, key: str, value: str) -> None:
        async with self._lock:
            data = await self._read()
            data[key] = value
            await self._write(data)

    async def remove_item(self, key: str) -> None:
        async with self._lock:
            data = await self._read()
            if data.pop(key, None) is not None:
                await self._write(data)
