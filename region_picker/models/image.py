from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np


@dataclass
class Image:
    """
    Simple data object: RGBA pixel buffer (+ source name for bookkeeping).
    No OpenCV logic outside the repository.
    """
    width: int
    height: int
    pixels: np.ndarray | None = None  # Shape (H, W, 4), dtype uint8, RGBA order. None if unreadable.
    file_name: str = ""  # Name of the loaded file, stored with every saved row.
    path: Path | None = None  # Source of the image, if it came from disk.

    @property
    def has_pixels(self) -> bool:
        return self.pixels is not None
