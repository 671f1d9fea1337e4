from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class UnknownHeight:
    """The upstream height has not been observed, or the last check failed."""

    def __str__(self) -> str:
        return "unknown"


@dataclass(frozen=True)
class KnownHeight:
    value: int

    def __post_init__(self):
        if self.value < 0:
            raise ValueError(f"Block height must be non-negative, got {self.value}")

    def __str__(self) -> str:
        return str(self.value)


Height = Union[UnknownHeight, KnownHeight]

UNKNOWN_HEIGHT = UnknownHeight()
