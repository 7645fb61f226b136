"""
Usage Reporter Module

Reports how much of the probed storage quota is in use.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from voice_history.storage.quota import QuotaProber
from voice_history.storage.substrate import KeyValueStore

logger = logging.getLogger(__name__)

UNITS = ("B", "KB", "MB", "GB")

# Strings are accounted at two bytes per character
BYTES_PER_CHAR = 2


def format_bytes(size_bytes: float) -> str:
    """Format byte count to a human-readable string, e.g. '1.50 KB'."""
    value = float(size_bytes)
    unit = UNITS[0]
    for unit in UNITS:
        if value < 1024 or unit == UNITS[-1]:
            break
        value /= 1024
    return f"{value:.2f} {unit}"


@dataclass
class StorageUsage:
    """Snapshot of storage consumption against the probed quota."""
    used: int
    total: int
    percentage: float
    used_formatted: str
    total_formatted: str


class UsageReporter:
    """Computes storage usage for a substrate and its quota prober."""

    def __init__(self, store: KeyValueStore, prober: QuotaProber):
        self.store = store
        self.prober = prober

    async def used_bytes(self) -> int:
        """Approximate bytes used by every key and value in the store."""
        pairs = await self.store.items()
        return sum(BYTES_PER_CHAR * (len(key) + len(value)) for key, value in pairs)

    async def get_usage(self) -> Optional[StorageUsage]:
        """
        Get current storage usage.

        Returns:
            StorageUsage, or None when the quota is not known yet, could
            not be determined, or the store could not be read
        """
        total = self.prober.cached
        if total is None:
            return None
        if total == 0:
            logger.warning("Storage quota is 0 - detection failed")
            return None

        try:
            used = await self.used_bytes()
        except Exception as e:
            logger.error(f"Error calculating storage usage: {e}")
            return None

        return StorageUsage(
            used=used,
            total=total,
            percentage=min(used / total * 100, 100.0),
            used_formatted=format_bytes(used),
            total_formatted=format_bytes(total),
        )
