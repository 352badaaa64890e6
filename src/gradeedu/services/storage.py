"""Secure key/value storage for session credentials."""

import asyncio
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path

import aiofiles
import aiofiles.os

from gradeedu.config import settings

AUTH_TOKEN_KEY = "auth_token"
REFRESH_TOKEN_KEY = "refresh_token"


class TokenStore(ABC):
    """Opaque string key/value store with get/set/delete."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    async def set_many(self, values: dict[str, str]) -> None:
        """Store several values in one write."""

    @abstractmethod
    async def delete_many(self, keys: list[str]) -> None:
        """Remove several keys in one write; missing keys are ignored."""

    async def set(self, key: str, value: str) -> None:
        await self.set_many({key: value})

    async def delete(self, key: str) -> None:
        await self.delete_many([key])


class InMemoryTokenStore(TokenStore):
    """Process-local store, used for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set_many(self, values: dict[str, str]) -> None:
        self.values.update(values)

    async def delete_many(self, keys: list[str]) -> None:
        for key in keys:
            self.values.pop(key, None)


class FileTokenStore(TokenStore):
    """JSON file readable only by the current user.

    Every write replaces the whole file, so a pair written through
    ``set_many`` lands on disk together or not at all.
    """

    def __init__(self, path: str | None = None) -> None:
        self.path = Path(path or settings.token_store_path).expanduser()
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        values = await self._read()
        return values.get(key)

    async def set_many(self, values: dict[str, str]) -> None:
        async with self._lock:
            current = await self._read()
            current.update(values)
            await self._write(current)

    async def delete_many(self, keys: list[str]) -> None:
        async with self._lock:
            current = await self._read()
            for key in keys:
                current.pop(key, None)
            await self._write(current)

    async def _read(self) -> dict[str, str]:
        """Load the stored mapping; a missing or corrupt file reads as empty."""
        if not self.path.exists():
            return {}
        async with aiofiles.open(self.path, "r", encoding="utf-8") as in_file:
            raw = await in_file.read()
        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    async def _write(self, values: dict[str, str]) -> None:
        """Write to a temp file then atomically replace the store."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")

        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as out_file:
            await out_file.write(json.dumps(values))
        os.chmod(tmp_path, 0o600)

        await aiofiles.os.replace(tmp_path, self.path)
