from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator, NamedTuple
import numpy as np


class SamplePixel(NamedTuple):
    x: int
    y: int
    r: int
    g: int
    b: int


def _empty_coords() -> np.ndarray:
    return np.empty(0, dtype=np.int64)


def _empty_rgb() -> np.ndarray:
    return np.empty((0, 3), dtype=np.uint8)


@dataclass
class PixelSample:
    """
    Pixels inside a selection, row-major (y ascending outer, x ascending inner).
    Stored as parallel arrays; iterate to get SamplePixel tuples.
    """
    xs: np.ndarray = field(default_factory=_empty_coords)   # (N,) int
    ys: np.ndarray = field(default_factory=_empty_coords)   # (N,) int
    rgb: np.ndarray = field(default_factory=_empty_rgb)     # (N, 3) uint8

    def __len__(self) -> int:
        return int(self.xs.shape[0])

    def __iter__(self) -> Iterator[SamplePixel]:
        for x, y, (r, g, b) in zip(self.xs.tolist(), self.ys.tolist(), self.rgb.tolist()):
            yield SamplePixel(x, y, r, g, b)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0
