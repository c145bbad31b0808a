from __future__ import annotations
import numpy as np

from ..models.geometry import Rectangle
from ..models.image import Image
from ..models.pixel_sample import PixelSample


class RegionService:
    """Extracts the pixels inside a selection rectangle."""

    @staticmethod
    def sample(rectangle: Rectangle | None, image: Image | None) -> PixelSample:
        """
        Collect every pixel with x1 <= x <= x2 and y1 <= y <= y2, row-major.

        A missing rectangle, image or pixel buffer yields an empty sample.
        Point and line rectangles yield 1-pixel, 1-wide or 1-tall samples.
        """
        if rectangle is None or image is None or not image.has_pixels:
            return PixelSample()

        if not rectangle.fits(image.width, image.height):
            raise ValueError(
                f"Rectangle {rectangle.as_dict()} exceeds buffer {image.width}x{image.height}"
            )

        block = image.pixels[rectangle.y1:rectangle.y2 + 1, rectangle.x1:rectangle.x2 + 1, :3]
        ys, xs = np.mgrid[rectangle.y1:rectangle.y2 + 1, rectangle.x1:rectangle.x2 + 1]
        return PixelSample(
            xs=xs.ravel().astype(np.int64),
            ys=ys.ravel().astype(np.int64),
            rgb=block.reshape(-1, 3),
        )

    @staticmethod
    def pixel_at(image: Image | None, x: int, y: int):
        """(R, G, B) at a buffer coordinate, or None without pixel data / out of bounds."""
        if image is None or not image.has_pixels:
            return None
        if not (0 <= x < image.width and 0 <= y < image.height):
            return None
        r, g, b = image.pixels[y, x, :3].tolist()
        return r, g, b
