import logging
from typing import Any, Dict, Optional

from uvicorn.logging import TRACE_LOG_LEVEL

from accelerator.metrics import CACHE_ENTRIES, UPSTREAM_HEIGHT
from .height import UNKNOWN_HEIGHT, Height, KnownHeight, UnknownHeight

logger = logging.getLogger("uvicorn.error")

CacheEntry = Dict[str, Any]


class HeightCache:
    """
    Cache of JSON-RPC responses that is only valid for one block height.

    Entries carry no expiry of their own. The whole mapping is dropped whenever
    the upstream height advances or becomes unknown, and nothing is served or
    stored while the height is unknown.
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._height: Height = UNKNOWN_HEIGHT
        UPSTREAM_HEIGHT.set(-1)
        CACHE_ENTRIES.set(0)

    @property
    def current_height(self) -> Height:
        return self._height

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[CacheEntry]:
        logger.log(TRACE_LOG_LEVEL, f"[HeightCache] Getting cache for key {key}")

        if isinstance(self._height, UnknownHeight):
            logger.warning("[HeightCache] Current height is unknown, skipping cache get")
            return None

        entry = self._entries.get(key)
        logger.log(
            TRACE_LOG_LEVEL,
            f"[HeightCache] Cache {'miss' if entry is None else 'hit'} for key {key}",
        )
        return entry

    def set(
        self, key: str, entry: CacheEntry, observed_height: Optional[Height] = None
    ) -> bool:
        """
        Store ``entry`` under ``key`` for the current height.

        ``observed_height`` is the height that was current when the response
        was requested. A write whose height no longer matches belongs to an
        older block and is dropped. Returns whether the entry was stored.
        """
        if isinstance(self._height, UnknownHeight):
            logger.warning(
                "[HeightCache] Current height is unknown, skipping cache update"
            )
            return False

        if observed_height is not None and observed_height != self._height:
            logger.debug(
                f"[HeightCache] Response was requested at height {observed_height} "
                f"but current height is {self._height}, skipping cache update"
            )
            return False

        self._entries[key] = entry
        CACHE_ENTRIES.set(len(self._entries))
        logger.log(TRACE_LOG_LEVEL, f"[HeightCache] Cache updated for key {key}")
        return True

    def clear(self) -> None:
        self._entries.clear()
        CACHE_ENTRIES.set(0)

    def reset(self) -> None:
        """Forget the current height and every cached entry."""
        logger.warning("[HeightCache] Resetting current height and cache")
        self._height = UNKNOWN_HEIGHT
        self.clear()
        UPSTREAM_HEIGHT.set(-1)

    def update_height(self, height: Height) -> bool:
        """
        Apply a new height observation. Returns True when the height changed.

        Observations at or below the known height are ignored so stale or out
        of order responses never clear the cache.
        """
        if isinstance(height, UnknownHeight):
            self.reset()
            return True

        if isinstance(self._height, UnknownHeight):
            logger.info(f"[HeightCache] Current height is unknown, updating to {height}")
            self._set_height(height)
            return True

        if height.value <= self._height.value:
            logger.log(
                TRACE_LOG_LEVEL,
                f"[HeightCache] Height {height} is not above {self._height}, skipping update",
            )
            return False

        logger.info(f"[HeightCache] Updating current height to {height} and clearing cache")
        self._set_height(height)
        return True

    def _set_height(self, height: KnownHeight) -> None:
        self.clear()
        self._height = height
        UPSTREAM_HEIGHT.set(height.value)
