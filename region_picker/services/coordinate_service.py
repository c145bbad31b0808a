import math

from ..models.geometry import DisplayRect, Point, PointerEvent


class CoordinateService:
    """
    Maps pointer positions on the displayed image to buffer pixel coordinates.
    The display may be scaled differently on each axis.
    """

    @staticmethod
    def _map_axis(offset: float, display_size: float, buffer_size: int) -> int:
        if display_size <= 0 or buffer_size <= 0:
            return 0
        value = math.floor(offset * (buffer_size / display_size))
        return max(0, min(value, buffer_size - 1))

    def map(
        self,
        event: PointerEvent,
        display_rect: DisplayRect,
        buffer_width: int,
        buffer_height: int,
    ) -> Point:
        """
        Args:
            event (PointerEvent): pointer position in client coordinates.
            display_rect (DisplayRect): where the image is drawn, in client coordinates.
            buffer_width (int): image width in pixels.
            buffer_height (int): image height in pixels.

        Returns:
            Point: in-bounds buffer coordinate; positions outside the element
            clamp to the nearest edge.
        """
        x = self._map_axis(event.client_x - display_rect.left, display_rect.width, buffer_width)
        y = self._map_axis(event.client_y - display_rect.top, display_rect.height, buffer_height)
        return Point(x, y)