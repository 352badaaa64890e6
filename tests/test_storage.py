"""Tests for the credential stores."""

import json
import os
import stat
from pathlib import Path

import pytest

from gradeedu.services.storage import (
    AUTH_TOKEN_KEY,
    REFRESH_TOKEN_KEY,
    FileTokenStore,
    InMemoryTokenStore,
)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Credential file location inside a nested, not yet created directory."""
    return tmp_path / "nested" / "credentials.json"


class TestFileTokenStore:
    """Tests for FileTokenStore."""

    @pytest.mark.asyncio
    async def test_missing_file_reads_empty(self, store_path: Path) -> None:
        """Reading before any write returns None."""
        store = FileTokenStore(str(store_path))

        assert await store.get(AUTH_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_set_many_persists_pair(self, store_path: Path) -> None:
        """Both tokens land in one JSON file readable by a fresh store."""
        store = FileTokenStore(str(store_path))

        await store.set_many({AUTH_TOKEN_KEY: "t1", REFRESH_TOKEN_KEY: "r1"})

        reopened = FileTokenStore(str(store_path))
        assert await reopened.get(AUTH_TOKEN_KEY) == "t1"
        assert await reopened.get(REFRESH_TOKEN_KEY) == "r1"
        assert json.loads(store_path.read_text()) == {
            AUTH_TOKEN_KEY: "t1",
            REFRESH_TOKEN_KEY: "r1",
        }

    @pytest.mark.asyncio
    async def test_file_is_private(self, store_path: Path) -> None:
        """The credential file is only accessible to its owner."""
        store = FileTokenStore(str(store_path))

        await store.set(AUTH_TOKEN_KEY, "t1")

        mode = stat.S_IMODE(os.stat(store_path).st_mode)
        assert mode == 0o600

    @pytest.mark.asyncio
    async def test_delete_many_removes_keys(self, store_path: Path) -> None:
        """Deleting keys leaves other entries intact and ignores missing ones."""
        store = FileTokenStore(str(store_path))
        await store.set_many(
            {AUTH_TOKEN_KEY: "t1", REFRESH_TOKEN_KEY: "r1", "other": "x"}
        )

        await store.delete_many([AUTH_TOKEN_KEY, REFRESH_TOKEN_KEY, "absent"])

        assert await store.get(AUTH_TOKEN_KEY) is None
        assert await store.get(REFRESH_TOKEN_KEY) is None
        assert await store.get("other") == "x"

    @pytest.mark.asyncio
    async def test_corrupt_file_reads_empty(self, store_path: Path) -> None:
        """A corrupt credential file behaves like a logged-out store."""
        store_path.parent.mkdir(parents=True)
        store_path.write_text("{not json")
        store = FileTokenStore(str(store_path))

        assert await store.get(AUTH_TOKEN_KEY) is None


class TestInMemoryTokenStore:
    """Tests for InMemoryTokenStore."""

    @pytest.mark.asyncio
    async def test_set_get_delete(self) -> None:
        """Single-key helpers go through the batch operations."""
        store = InMemoryTokenStore()

        await store.set(AUTH_TOKEN_KEY, "t1")
        assert await store.get(AUTH_TOKEN_KEY) == "t1"

        await store.delete(AUTH_TOKEN_KEY)
        assert await store.get(AUTH_TOKEN_KEY) is None
