from __future__ import annotations
import logging
from dataclasses import replace
from typing import Optional

from ..models.drag_session import DragSession, SelectionEvent, SelectionEventKind, SelectionState
from ..models.geometry import PRIMARY_BUTTON, Point, Rectangle

logger = logging.getLogger(__name__)


class SelectionService:
    """
    Drag-selection state machine: IDLE -> DRAGGING -> FINALIZED.

    Holds only one selection at a time. Every operation returns the event the
    caller should act on (clear overlay, draw live rectangle, recompute
    histogram), or None when the input changes nothing.
    """

    def __init__(self):
        self.state = SelectionState.IDLE
        self.drag: DragSession | None = None
        self.rectangle: Rectangle | None = None

    def pointer_down(self, point: Point, button: int = PRIMARY_BUTTON) -> Optional[SelectionEvent]:
        if button != PRIMARY_BUTTON:
            return None
        self.drag = DragSession(start=point, current=point)
        self.rectangle = None
        self.state = SelectionState.DRAGGING
        return SelectionEvent(SelectionEventKind.STARTED, self.drag.rectangle)

    def pointer_move(self, point: Point) -> Optional[SelectionEvent]:
        if self.state is not SelectionState.DRAGGING:
            return None
        self.drag = replace(self.drag, current=point)
        return SelectionEvent(SelectionEventKind.LIVE, self.drag.rectangle)

    def pointer_up(self, point: Point) -> Optional[SelectionEvent]:
        if self.state is not SelectionState.DRAGGING:
            return None
        self.drag = replace(self.drag, current=point)
        return self._finalize()

    def pointer_leave(self) -> Optional[SelectionEvent]:
        """Finalize with the last known pointer position, if a drag is active."""
        if self.state is not SelectionState.DRAGGING:
            return None
        return self._finalize()

    def reset(self) -> None:
        self.state = SelectionState.IDLE
        self.drag = None
        self.rectangle = None

    def _finalize(self) -> SelectionEvent:
        self.rectangle = self.drag.rectangle
        self.drag = None
        self.state = SelectionState.FINALIZED
        logger.info(f"Rectangle finalized: {self.rectangle.as_dict()}")
        return SelectionEvent(SelectionEventKind.FINALIZED, self.rectangle)
