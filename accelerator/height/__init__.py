from .height import UNKNOWN_HEIGHT, Height, KnownHeight, UnknownHeight
from .height_cache import CacheEntry, HeightCache
from .height_poller import HeightPoller

__all__ = [
    "UNKNOWN_HEIGHT",
    "Height",
    "KnownHeight",
    "UnknownHeight",
    "CacheEntry",
    "HeightCache",
    "HeightPoller",
]
