"""
Storage Substrate Module

Capacity-limited key/value stores that the history store persists into.
Both stores count capacity in characters (key + value) across all entries
and reject a write that would exceed it with QuotaExceededError.
"""

import asyncio
import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from voice_history.exceptions import QuotaExceededError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 5 * 1024 * 1024


class KeyValueStore(ABC):
    """
    Abstract async key/value store with a hidden capacity limit.

    Keys and values are strings.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value for key, or None if absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key. Raises QuotaExceededError when full."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every key."""

    @abstractmethod
    async def keys(self) -> List[str]:
        """Return all keys currently stored."""

    async def items(self) -> List[Tuple[str, str]]:
        """Return all (key, value) pairs currently stored."""
        pairs = []
        for key in await self.keys():
            value = await self.get(key)
            if value is not None:
                pairs.append((key, value))
        return pairs


def _would_exceed(data: Dict[str, str], key: str, value: str, capacity: int) -> bool:
    """Check whether replacing data[key] with value goes over capacity."""
    used = sum(len(k) + len(v) for k, v in data.items() if k != key)
    return used + len(key) + len(value) > capacity


class MemoryStore(KeyValueStore):
    """In-memory store, lost when the process exits."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self.capacity = capacity
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if _would_exceed(self._data, key, value, self.capacity):
            raise QuotaExceededError(
                f"Writing {len(value)} chars to '{key}' exceeds capacity {self.capacity}"
            )
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()

    async def keys(self) -> List[str]:
        return list(self._data)


class FileStore(KeyValueStore):
    """
    JSON-file-backed store that survives across sessions.

    The whole store is one JSON object on disk. It is loaded once on
    construction and rewritten after every mutation.
    """

    DEFAULT_PATH = Path.home() / ".voice-history" / "storage.json"

    def __init__(self, path: Optional[Path] = None, capacity: int = DEFAULT_CAPACITY):
        """
        Initialize file store.

        Args:
            path: Path to the JSON file. Defaults to ~/.voice-history/storage.json
            capacity: Maximum characters (keys + values) the store accepts
        """
        self.path = Path(path) if path else self.DEFAULT_PATH
        self.capacity = capacity
        self._lock = threading.Lock()
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        """Read the store file, treating a missing or corrupt file as empty."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring storage file {self.path}: not a JSON object")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self, snapshot: Dict[str, str]) -> None:
        """Write a snapshot of the store to disk."""
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(snapshot, f, ensure_ascii=False)
                tmp_path.replace(self.path)
            except OSError as e:
                raise StorageError(f"Failed to write storage file {self.path}: {e}") from e

    async def _commit(self, data: Dict[str, str]) -> None:
        await asyncio.to_thread(self._flush, data)
        self._data = data

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        if _would_exceed(self._data, key, value, self.capacity):
            raise QuotaExceededError(
                f"Writing {len(value)} chars to '{key}' exceeds capacity {self.capacity}"
            )
        data = dict(self._data)
        data[key] = value
        await self._commit(data)

    async def delete(self, key: str) -> None:
        if key not in self._data:
            return
        data = dict(self._data)
        del data[key]
        await self._commit(data)

    async def clear(self) -> None:
        await self._commit({})

    async def keys(self) -> List[str]:
        return list(self._data)
