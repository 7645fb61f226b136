"""
Configuration Module
Loads Voice History settings from environment variables and .env files.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from voice_history.storage.history_store import HISTORY_KEY, MAX_HISTORY_ITEMS
from voice_history.storage.substrate import DEFAULT_CAPACITY, FileStore

logger = logging.getLogger(__name__)


def _parse_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("true", "1", "yes")


def _parse_int(name: str, value: Optional[str], default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{value}'") from None


@dataclass
class Config:
    """Voice History configuration."""
    storage_path: Path = FileStore.DEFAULT_PATH
    storage_capacity: int = DEFAULT_CAPACITY
    history_key: str = HISTORY_KEY
    max_items: int = MAX_HISTORY_ITEMS
    debug: bool = False

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Config":
        """
        Build configuration from environment variables.

        Args:
            load_dotenv_file: Also read variables from a .env file

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        if load_dotenv_file:
            load_dotenv()

        path = os.environ.get("VOICE_HISTORY_PATH")
        return cls(
            storage_path=Path(path).expanduser() if path else FileStore.DEFAULT_PATH,
            storage_capacity=_parse_int(
                "VOICE_HISTORY_CAPACITY",
                os.environ.get("VOICE_HISTORY_CAPACITY"),
                DEFAULT_CAPACITY,
            ),
            history_key=os.environ.get("VOICE_HISTORY_KEY") or HISTORY_KEY,
            max_items=_parse_int(
                "VOICE_HISTORY_MAX_ITEMS",
                os.environ.get("VOICE_HISTORY_MAX_ITEMS"),
                MAX_HISTORY_ITEMS,
            ),
            debug=_parse_bool(os.environ.get("VOICE_HISTORY_DEBUG")),
        )

    def validate(self) -> List[str]:
        """
        Fix out-of-range values and report what was changed.

        Returns:
            List of warning messages
        """
        warnings = []
        if self.storage_capacity <= 0:
            warnings.append(
                f"VOICE_HISTORY_CAPACITY must be positive, using {DEFAULT_CAPACITY}"
            )
            self.storage_capacity = DEFAULT_CAPACITY
        if self.max_items <= 0:
            warnings.append(
                f"VOICE_HISTORY_MAX_ITEMS must be positive, using {MAX_HISTORY_ITEMS}"
            )
            self.max_items = MAX_HISTORY_ITEMS
        return warnings
