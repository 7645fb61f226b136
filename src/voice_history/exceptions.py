"""
Custom Exceptions for Voice History.

This module defines the exception hierarchy used throughout the application.
"""


class VoiceHistoryError(Exception):
    """Base exception for all Voice History errors."""
    pass


class StorageError(VoiceHistoryError):
    """Error related to data storage operations."""
    pass


class QuotaExceededError(StorageError):
    """Write rejected because it would exceed the storage capacity."""
    pass


class TranscriptionError(VoiceHistoryError):
    """Error-shaped or unreadable response from the transcription service."""
    pass
