from __future__ import annotations
from dataclasses import dataclass
from typing import NamedTuple


PRIMARY_BUTTON = 0


class Point(NamedTuple):
    x: int
    y: int


@dataclass(frozen=True)
class PointerEvent:
    """Pointer position in client (window) coordinates."""
    client_x: float
    client_y: float
    button: int = PRIMARY_BUTTON


@dataclass(frozen=True)
class DisplayRect:
    """
    On-screen bounding box of the displayed image, in the same client
    coordinates as PointerEvent. Its size may differ from the buffer size.
    """
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class Rectangle:
    """
    Normalised selection in buffer pixels, bounds inclusive:
    0 <= x1 <= x2 < width and 0 <= y1 <= y2 < height.
    """
    x1: int
    y1: int
    x2: int
    y2: int

    def __post_init__(self):
        if self.x1 > self.x2 or self.y1 > self.y2:
            raise ValueError(f"Rectangle is not normalised: {self}")

    @classmethod
    def from_points(cls, a: Point, b: Point) -> Rectangle:
        """Build a rectangle from two drag endpoints in any order."""
        return cls(
            x1=min(a.x, b.x),
            y1=min(a.y, b.y),
            x2=max(a.x, b.x),
            y2=max(a.y, b.y),
        )

    @property
    def span_width(self) -> int:
        return self.x2 - self.x1

    @property
    def span_height(self) -> int:
        return self.y2 - self.y1

    @property
    def is_empty(self) -> bool:
        """True for point or line selections (zero geometric area)."""
        return self.span_width == 0 or self.span_height == 0

    @property
    def pixel_count(self) -> int:
        return (self.span_width + 1) * (self.span_height + 1)

    def fits(self, width: int, height: int) -> bool:
        return self.x1 >= 0 and self.y1 >= 0 and self.x2 < width and self.y2 < height

    def as_dict(self) -> dict:
        return {"x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}
