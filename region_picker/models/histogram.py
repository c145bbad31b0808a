from __future__ import annotations
from dataclasses import dataclass, field
import numpy as np

BUCKETS = 256
CHANNELS = ("R", "G", "B")


def _zeros() -> np.ndarray:
    return np.zeros(BUCKETS, dtype=np.int64)


@dataclass(frozen=True)
class Histogram:
    """
    Per-channel frequency counts: index = channel value, value = pixel count.
    A fresh value is computed for every selection; never updated in place.
    """
    red: np.ndarray = field(default_factory=_zeros)
    green: np.ndarray = field(default_factory=_zeros)
    blue: np.ndarray = field(default_factory=_zeros)

    def channel(self, name: str) -> np.ndarray:
        return {"R": self.red, "G": self.green, "B": self.blue}[name]

    @property
    def total(self) -> int:
        """Number of pixels counted (same for every channel)."""
        return int(self.red.sum())
