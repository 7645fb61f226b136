"""
Text Repair Module
Reverses UTF-8 text that was mis-decoded as Latin-1 and normalizes Unicode.

The detection is a heuristic. Text is only rewritten when it both looks
like mojibake and the rewrite reveals characters of the target script
that were not there before.
"""

import logging
import re
import unicodedata
from typing import Any, Pattern

logger = logging.getLogger(__name__)

# A Latin-1 lead byte followed by a UTF-8 continuation byte
MOJIBAKE_PATTERN: Pattern[str] = re.compile(r"[\u00c0-\u00ff][\u0080-\u00bf]")

# CJK Unified Ideographs (U+4E00 - U+9FFF)
CJK_UNIFIED_IDEOGRAPHS: Pattern[str] = re.compile(r"[\u4e00-\u9fff]")


def _reinterpret_as_utf8(text: str) -> str:
    """Treat each character as one raw byte and decode the bytes as UTF-8."""
    raw = text.encode("latin-1")
    return raw.decode("utf-8", errors="replace")


def repair_text(text: Any, target: Pattern[str] = CJK_UNIFIED_IDEOGRAPHS) -> Any:
    """
    Repair a string whose UTF-8 bytes were decoded one byte per character.

    Args:
        text: Possibly corrupted string. Non-strings are returned unchanged.
        target: Pattern matching the characters a successful repair reveals.

    Returns:
        The repaired string, or the input unchanged when the gate fails.
    """
    if not isinstance(text, str) or not MOJIBAKE_PATTERN.search(text):
        return text

    try:
        decoded = _reinterpret_as_utf8(text)
        revealed = set(target.findall(decoded)) - set(target.findall(text))
    except Exception as e:
        logger.debug(f"Skipping repair: {e}")
        return text

    if revealed and decoded != text:
        logger.debug(f"Repaired mojibake ({len(text)} -> {len(decoded)} chars)")
        return decoded

    return text


def repair_object(obj: Any, target: Pattern[str] = CJK_UNIFIED_IDEOGRAPHS) -> Any:
    """
    Apply repair_text to every string inside nested dicts, lists and tuples.

    Returns a new structure; the input is never modified.
    """
    if isinstance(obj, str):
        return repair_text(obj, target)
    if isinstance(obj, dict):
        return {key: repair_object(value, target) for key, value in obj.items()}
    if isinstance(obj, list):
        return [repair_object(value, target) for value in obj]
    if isinstance(obj, tuple):
        return tuple(repair_object(value, target) for value in obj)
    return obj


def normalize_text(text: Any) -> Any:
    """Normalize to NFC, returning the input unchanged if that fails."""
    try:
        return unicodedata.normalize("NFC", text)
    except (TypeError, ValueError):
        return text
