"""
History Store Module

Provides bounded, persistent storage for transcription history on top of
a capacity-limited key/value substrate. The whole history lives under one
key as a JSON array, newest first.

History is a best-effort cache: every operation reports an Outcome and
logs failures instead of raising.
"""

import json
import logging
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from voice_history.storage.substrate import KeyValueStore
from voice_history.text_repair import normalize_text

logger = logging.getLogger(__name__)

HISTORY_KEY = "voice_translate_history"
MAX_HISTORY_ITEMS = 50

_ID_ALPHABET = string.ascii_lowercase + string.digits


class Outcome(Enum):
    """Result of a best-effort history operation."""
    SAVED = "saved"
    RECOVERED = "recovered"  # Saved after wiping history to make room
    SKIPPED = "skipped"
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    CLEARED = "cleared"
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        return self is not Outcome.FAILED


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass
class AudioInfo:
    """Metadata about the transcribed audio."""
    file_name: str = ""
    file_size: int = 0
    file_size_formatted: str = ""
    mime_type: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "AudioInfo":
        if not isinstance(data, dict):
            return cls()
        size = data.get("fileSize")
        return cls(
            file_name=_text(data.get("fileName")),
            file_size=size if isinstance(size, int) and not isinstance(size, bool) else 0,
            file_size_formatted=_text(data.get("fileSizeFormatted")),
            mime_type=_text(data.get("mimeType")),
            url=_text(data.get("url")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "fileSize": self.file_size,
            "fileSizeFormatted": self.file_size_formatted,
            "mimeType": self.mime_type,
            "url": self.url,
        }


@dataclass
class AIResponse:
    """Source-script text, its romanization, and its translation."""
    china: str
    pinyin: str
    vietnamese: str

    FIELDS = ("china", "pinyin", "vietnamese")

    @classmethod
    def from_dict(cls, data: Any) -> Optional["AIResponse"]:
        """Build from a dict, or return None if any field is not a string."""
        if not isinstance(data, dict):
            return None
        values = [data.get(name) for name in cls.FIELDS]
        if not all(isinstance(v, str) for v in values):
            return None
        return cls(*values)

    def is_complete(self) -> bool:
        return all(isinstance(v, str) and v for v in (self.china, self.pinyin, self.vietnamese))

    def normalized(self) -> "AIResponse":
        return AIResponse(
            china=normalize_text(self.china),
            pinyin=normalize_text(self.pinyin),
            vietnamese=normalize_text(self.vietnamese),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"china": self.china, "pinyin": self.pinyin, "vietnamese": self.vietnamese}


@dataclass
class TranscriptionResult:
    """A completed transcription as returned by the service."""
    message: str
    audio_info: AudioInfo = field(default_factory=AudioInfo)
    ai_response: Optional[AIResponse] = None
    model: str = ""
    timestamp: str = ""
    has_audio_file: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranscriptionResult":
        return cls(
            message=_text(data.get("message")),
            audio_info=AudioInfo.from_dict(data.get("audioInfo")),
            ai_response=AIResponse.from_dict(data.get("aiResponse")),
            model=_text(data.get("model")),
            timestamp=_text(data.get("timestamp")),
            has_audio_file=data.get("hasAudioFile") is True,
        )

    def is_storable(self) -> bool:
        """Only results with a complete AI response are kept in history."""
        return self.ai_response is not None and self.ai_response.is_complete()


@dataclass
class HistoryItem(TranscriptionResult):
    """A transcription result as persisted in history."""
    id: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryItem":
        result = TranscriptionResult.from_dict(data)
        return cls(id=_text(data.get("id")), **vars(result))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message,
            "audioInfo": self.audio_info.to_dict(),
            "aiResponse": self.ai_response.to_dict() if self.ai_response else None,
            "model": self.model,
            "timestamp": self.timestamp,
            "hasAudioFile": self.has_audio_file,
        }

    def normalized(self) -> "HistoryItem":
        """Return a copy with file name and AI response in NFC form."""
        audio = AudioInfo(**vars(self.audio_info))
        audio.file_name = normalize_text(audio.file_name)
        return HistoryItem(
            id=self.id,
            message=self.message,
            audio_info=audio,
            ai_response=self.ai_response.normalized() if self.ai_response else None,
            model=self.model,
            timestamp=self.timestamp,
            has_audio_file=self.has_audio_file,
        )


def generate_id(taken: Optional[set] = None) -> str:
    """Build '<epoch-millis>_<9 base-36 chars>', avoiding ids in taken."""
    taken = taken or set()
    while True:
        suffix = "".join(random.choices(_ID_ALPHABET, k=9))
        item_id = f"{int(time.time() * 1000)}_{suffix}"
        if item_id not in taken:
            return item_id


def _is_valid_record(record: Any) -> bool:
    """A record needs a non-empty id and a complete AI response."""
    if not isinstance(record, dict):
        return False
    item_id = record.get("id")
    if not isinstance(item_id, str) or not item_id:
        return False
    response = AIResponse.from_dict(record.get("aiResponse"))
    return response is not None and response.is_complete()


class HistoryStore:
    """
    Capacity-bounded transcription history.

    Items are kept newest first and truncated to max_items after every
    save. Calls are expected to be issued one at a time; there is no
    internal locking.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = HISTORY_KEY,
        max_items: int = MAX_HISTORY_ITEMS,
    ):
        """
        Initialize history store.

        Args:
            store: Substrate the history is persisted into
            key: Substrate key holding the JSON array
            max_items: Maximum number of items kept
        """
        self.store = store
        self.key = key
        self.max_items = max_items

    async def _write(self, records: List[Dict[str, Any]]) -> None:
        await self.store.set(self.key, json.dumps(records, ensure_ascii=False))

    async def _heal(self, records: Optional[List[Dict[str, Any]]]) -> None:
        """Rewrite the cleaned array, or wipe it when records is None."""
        try:
            if records is None:
                await self.store.delete(self.key)
            else:
                await self._write(records)
        except Exception as e:
            logger.warning(f"Could not rewrite cleaned history: {e}")

    async def _load_records(self) -> List[Dict[str, Any]]:
        """
        Read valid raw records, healing the stored array on the way.

        Corrupt payloads are wiped. Invalid items are dropped and the
        cleaned array is written back. A failed rewrite is only logged.
        """
        raw = await self.store.get(self.key)
        if raw is None:
            return []

        try:
            records = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            records = None
            logger.warning(f"History payload is not valid JSON, wiping: {e}")

        if not isinstance(records, list):
            if records is not None:
                logger.warning("History payload is not a list, wiping")
            await self._heal(None)
            return []

        valid = [r for r in records if _is_valid_record(r)]
        if len(valid) != len(records):
            logger.warning(f"Dropped {len(records) - len(valid)} malformed history items")
            await self._heal(valid)
        return valid

    async def save(self, result: TranscriptionResult) -> Outcome:
        """
        Add a transcription result to the front of the history.

        Args:
            result: Completed transcription result

        Returns:
            SAVED, RECOVERED if history had to be wiped to make room,
            SKIPPED for results without a complete AI response, or FAILED
        """
        if not result.is_storable():
            logger.warning("Skipping save to history: invalid or missing AI response")
            return Outcome.SKIPPED

        try:
            records = await self._load_records()
        except Exception as e:
            logger.error(f"Error reading history before save: {e}")
            records = []

        try:
            audio = AudioInfo(**vars(result.audio_info or AudioInfo()))
            audio.file_name = normalize_text(audio.file_name)
            item = HistoryItem(
                id=generate_id({r["id"] for r in records}),
                message=result.message,
                audio_info=audio,
                ai_response=result.ai_response.normalized(),
                model=result.model or "",
                timestamp=result.timestamp or datetime.now().isoformat(),
                has_audio_file=result.has_audio_file,
            )
            new_record = item.to_dict()
            # Serializing up front keeps a bad item from wiping history below
            json.dumps(new_record, ensure_ascii=False)
        except Exception as e:
            logger.error(f"Cannot build history item: {e}")
            return Outcome.FAILED

        records = [new_record] + records
        records = records[:self.max_items]

        try:
            await self._write(records)
            logger.debug(f"Saved history item {item.id} ({len(records)} total)")
            return Outcome.SAVED
        except Exception as e:
            logger.warning(f"Error saving to history, clearing and retrying: {e}")

        try:
            await self.store.delete(self.key)
            await self._write([new_record])
            return Outcome.RECOVERED
        except Exception as e:
            logger.error(f"Error saving to history after clearing: {e}")
            return Outcome.FAILED

    async def list(self) -> List[HistoryItem]:
        """
        Get all history items.

        Returns:
            List of HistoryItem objects, newest first
        """
        try:
            records = await self._load_records()
        except Exception as e:
            logger.error(f"Error reading history: {e}")
            return []
        return [HistoryItem.from_dict(r).normalized() for r in records]

    async def count(self) -> int:
        """Get number of items in history."""
        return len(await self.list())

    async def delete(self, item_id: str) -> Outcome:
        """Delete a history item by ID."""
        try:
            records = await self._load_records()
            remaining = [r for r in records if r["id"] != item_id]
            if len(remaining) == len(records):
                return Outcome.NOT_FOUND
            await self._write(remaining)
            return Outcome.DELETED
        except Exception as e:
            logger.error(f"Error deleting history item {item_id}: {e}")
            return Outcome.FAILED

    async def clear(self) -> Outcome:
        """Remove all history items."""
        try:
            await self.store.delete(self.key)
            return Outcome.CLEARED
        except Exception as e:
            logger.error(f"Error clearing history: {e}")
            return Outcome.FAILED
