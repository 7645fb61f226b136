"""
Quota Prober Module

Discovers the capacity of a storage substrate by trial writes, since the
substrate offers no way to ask for it. An exponential pass finds a working
size, then a binary search refines it to within PRECISION bytes.
"""

import asyncio
import logging
from typing import Optional, Sequence

from voice_history.storage.substrate import KeyValueStore

logger = logging.getLogger(__name__)

KB = 1024
MB = 1024 * KB

PROBE_KEY = "__quota_probe__"

PROBE_SIZES: Sequence[int] = (
    100 * KB,
    500 * KB,
    1 * MB,
    2 * MB,
    5 * MB,
    10 * MB,
    20 * MB,
)

PRECISION = 1 * KB


class QuotaCache:
    """
    Once-cell holding the probed quota.

    Starts empty, is set exactly once, then read for the rest of its life.
    A stored 0 means the quota could not be discovered.
    """

    def __init__(self):
        self._value: Optional[int] = None

    @property
    def value(self) -> Optional[int]:
        return self._value

    @property
    def is_set(self) -> bool:
        return self._value is not None

    def set(self, value: int) -> None:
        if self._value is not None:
            raise RuntimeError("Quota has already been recorded")
        self._value = value


class QuotaProber:
    """
    Single-flight quota prober for one storage substrate.

    Concurrent callers of probe() share one in-flight probe. Once it
    finishes, the result is cached and never probed again.
    """

    def __init__(
        self,
        store: KeyValueStore,
        cache: Optional[QuotaCache] = None,
        sizes: Sequence[int] = PROBE_SIZES,
    ):
        self.store = store
        self.cache = cache if cache is not None else QuotaCache()
        self.sizes = tuple(sizes)
        self._task: Optional[asyncio.Task] = None

    @property
    def cached(self) -> Optional[int]:
        """Probed quota in bytes, or None while probing has not finished."""
        return self.cache.value

    def start(self) -> asyncio.Task:
        """Schedule the probe in the background and return its task."""
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
        return self._task

    async def probe(self) -> int:
        """
        Return the store's quota in bytes, probing it on first use.

        Returns:
            The largest write size that fit, or 0 if nothing fit
        """
        if self.cache.is_set:
            return self.cache.value
        return await asyncio.shield(self.start())

    async def _run(self) -> int:
        quota = await self._search()
        if not self.cache.is_set:
            self.cache.set(quota)
        logger.info(f"Storage quota probed: {quota} bytes")
        return quota

    async def _fits(self, size: int) -> bool:
        """Try writing a payload of size bytes, removing it afterwards."""
        try:
            await self.store.set(PROBE_KEY, "x" * size)
            await self.store.delete(PROBE_KEY)
            return True
        except Exception as e:
            logger.debug(f"Probe write of {size} bytes failed: {e}")
            try:
                await self.store.delete(PROBE_KEY)
            except Exception as cleanup_error:
                logger.debug(f"Probe cleanup failed: {cleanup_error}")
            return False
        finally:
            # Let other tasks run between attempts
            await asyncio.sleep(0)

    async def _search(self) -> int:
        low = 0
        for size in self.sizes:
            if not await self._fits(size):
                break
            low = size

        if low == 0:
            logger.warning("Storage quota could not be determined")
            return 0

        high = low * 2
        while high - low >= PRECISION:
            mid = (low + high) // 2
            if await self._fits(mid):
                low = mid
            else:
                high = mid
        return low
