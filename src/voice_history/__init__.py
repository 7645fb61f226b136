"""
Voice History - Local Transcription History

A bounded, persistent cache of voice transcription results that repairs
mis-decoded text, probes the capacity of its storage, and evicts the
oldest entries beyond a fixed item count.
"""

from voice_history.config import Config
from voice_history.exceptions import (
    VoiceHistoryError,
    StorageError,
    QuotaExceededError,
    TranscriptionError,
)
from voice_history.text_repair import repair_text, repair_object, normalize_text
from voice_history.transport import parse_response

from voice_history.storage import (
    AIResponse,
    AudioInfo,
    HistoryItem,
    HistoryStore,
    Outcome,
    TranscriptionResult,
    QuotaCache,
    QuotaProber,
    FileStore,
    KeyValueStore,
    MemoryStore,
    StorageUsage,
    UsageReporter,
    format_bytes,
)

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "Config",
    # Exceptions
    "VoiceHistoryError",
    "StorageError",
    "QuotaExceededError",
    "TranscriptionError",
    # Text repair
    "repair_text",
    "repair_object",
    "normalize_text",
    # Transport
    "parse_response",
    # Storage
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
