"""
Voice History Storage Module

Provides the storage substrate, quota probing, history store and usage reporting.
"""

from voice_history.storage.history_store import (
    AIResponse,
    AudioInfo,
    HistoryItem,
    HistoryStore,
    Outcome,
    TranscriptionResult,
)
from voice_history.storage.quota import QuotaCache, QuotaProber
from voice_history.storage.substrate import FileStore, KeyValueStore, MemoryStore
from voice_history.storage.usage import StorageUsage, UsageReporter, format_bytes

__all__ = [
    "AIResponse",
    "AudioInfo",
    "HistoryItem",
    "HistoryStore",
    "Outcome",
    "TranscriptionResult",
    "QuotaCache",
    "QuotaProber",
    "FileStore",
    "KeyValueStore",
    "MemoryStore",
    "StorageUsage",
    "UsageReporter",
    "format_bytes",
]
