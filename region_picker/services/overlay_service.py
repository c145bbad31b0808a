from __future__ import annotations
from typing import Tuple
from PIL import Image as PILImage, ImageDraw

from ..models.geometry import Rectangle

STROKE_COLOR = (255, 255, 255, 255)
FILL_COLOR = (0, 255, 0, 51)  # rgba(0,255,0,0.2)
LINE_WIDTH = 2
DASH_PATTERN = (6, 4)  # on, off


class OverlayService:
    """
    Draws the selection rectangle on a transparent surface that sits above
    the image. Live drags are dashed, finalized selections solid; both filled.
    """

    @staticmethod
    def _dashed_line(draw: ImageDraw.ImageDraw, start, end, width: int) -> None:
        (xa, ya), (xb, yb) = start, end
        length = abs(xb - xa) + abs(yb - ya)  # edges are axis-aligned
        if length == 0:
            return
        dx, dy = (xb - xa) / length, (yb - ya) / length
        on, off = DASH_PATTERN
        pos = 0
        while pos < length:
            seg_end = min(pos + on, length)
            draw.line(
                [(xa + dx * pos, ya + dy * pos), (xa + dx * seg_end, ya + dy * seg_end)],
                fill=STROKE_COLOR,
                width=width,
            )
            pos += on + off

    def render(
        self,
        rectangle: Rectangle | None,
        size: Tuple[int, int],
        dashed: bool = False,
        filled: bool = True,
    ) -> PILImage.Image:
        """
        Args:
            rectangle (Rectangle | None): selection in buffer pixels.
            size (Tuple[int, int]): overlay (width, height), same as the buffer.
            dashed (bool): dashed outline for a live drag.
            filled (bool): translucent fill inside the outline.

        Returns:
            PIL.Image.Image: RGBA overlay; fully transparent when there is
            nothing to draw (no rectangle, or a point/line rectangle).
        """
        overlay = PILImage.new("RGBA", size, (0, 0, 0, 0))
        if rectangle is None or rectangle.is_empty:
            return overlay

        draw = ImageDraw.Draw(overlay)
        box = (rectangle.x1, rectangle.y1, rectangle.x2, rectangle.y2)
        if filled:
            draw.rectangle(box, fill=FILL_COLOR)

        if dashed:
            x1, y1, x2, y2 = box
            corners = [(x1, y1), (x2, y1), (x2, y2), (x1, y2)]
            for i, corner in enumerate(corners):
                self._dashed_line(draw, corner, corners[(i + 1) % 4], LINE_WIDTH)
        else:
            draw.rectangle(box, outline=STROKE_COLOR, width=LINE_WIDTH)
        return overlay

    @staticmethod
    def compose(base: PILImage.Image, overlay: PILImage.Image) -> PILImage.Image:
        """Layer the overlay above the image; returns a new RGBA image."""
        return PILImage.alpha_composite(base.convert("RGBA"), overlay)
