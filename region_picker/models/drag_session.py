from __future__ import annotations
from dataclasses import dataclass
from enum import Enum

from .geometry import Point, Rectangle


class SelectionState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class DragSession:
    """
    Transient drag value, alive only between pointer-down and pointer-up/leave.
    Replaced (never mutated) on every move.
    """
    start: Point
    current: Point

    @property
    def rectangle(self) -> Rectangle:
        return Rectangle.from_points(self.start, self.current)


class SelectionEventKind(Enum):
    STARTED = "started"      # entered DRAGGING; clear overlay and prior selection
    LIVE = "live"            # overlay-only rectangle while dragging
    FINALIZED = "finalized"  # entered FINALIZED; recompute sample and histogram


@dataclass(frozen=True)
class SelectionEvent:
    kind: SelectionEventKind
    rectangle: Rectangle
