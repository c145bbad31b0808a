from __future__ import annotations
from pathlib import Path
from typing import Union
import logging
import numpy as np
from PIL import Image as PILImage

from ..exceptions import PixelAccessError
from ..models.image import Image
from ..repositories.image_repository import ImageRepository

logger = logging.getLogger(__name__)


class ImageService:
    """Loading helpers. No selection logic here."""
    def __init__(self):
        self.image_repository = ImageRepository()

    def is_supported(self, path: Union[str, Path]) -> bool:
        return self.image_repository.is_supported(path)

    def load(self, path: Union[str, Path]) -> Image:
        """
        Load a single image from disk.

        Raises:
            DecodeError: the file is missing or not an image.
        """
        path = Path(path)
        arr = self.image_repository.decode_file(path)
        return self._build(arr, file_name=path.name, path=path)

    def load_bytes(self, data: bytes, file_name: str) -> Image:
        """Same as load() for an in-memory upload."""
        arr = self.image_repository.decode_bytes(data, file_name)
        return self._build(arr, file_name=file_name)

    def _build(self, arr: np.ndarray, file_name: str, path: Path | None = None) -> Image:
        width, height = self.image_repository.dimensions(arr)
        try:
            pixels = self.image_repository.read_pixels(arr)
        except PixelAccessError as e:
            # Keep the geometry so pointer mapping still works; sampling degrades to "no data".
            logger.error(f"Pixel data unavailable for {file_name}: {e}")
            pixels = None
        image = self.image_repository.create_image(width, height, pixels, file_name=file_name, path=path)
        logger.info(f"Image loaded: {file_name} ({width}x{height}, pixels={'yes' if pixels is not None else 'no'})")
        return image

    def to_pil_image(self, img: Image) -> PILImage.Image:
        """
        Convert Image.pixels -> PIL RGBA image for display.
        Without pixel data a black placeholder of the same size is returned.
        """
        if not img.has_pixels:
            return PILImage.new("RGBA", (img.width, img.height), (0, 0, 0, 255))
        return PILImage.fromarray(np.ascontiguousarray(img.pixels))
