from pathlib import Path
from typing import Union
import os
import numpy as np
import cv2
from dotenv import load_dotenv

from ..exceptions import DecodeError, PixelAccessError
from ..models.image import Image

# Load environment variables
load_dotenv()

_TO_RGBA = {
    1: cv2.COLOR_GRAY2RGBA,
    3: cv2.COLOR_BGR2RGBA,
    4: cv2.COLOR_BGRA2RGBA,
}


class ImageRepository:
    """
    Handles file decoding and raw pixel extraction for Image entities.
    """
    def __init__(self):
        exts = os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.bmp,.webp")
        self.VALID_EXTS = {ext.strip().lower() for ext in exts.split(",") if ext.strip()}

    def is_supported(self, path: Union[str, Path]) -> bool:
        return Path(path).suffix.lower() in self.VALID_EXTS

    @staticmethod
    def decode_file(path: Union[str, Path]) -> np.ndarray:
        path = Path(path)
        arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise DecodeError(f"Image not found or unreadable: {path}", source=str(path))
        return arr

    @staticmethod
    def decode_bytes(data: bytes, name: str = "") -> np.ndarray:
        buf = np.frombuffer(data, dtype=np.uint8)
        arr = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED) if buf.size else None
        if arr is None:
            raise DecodeError(f"Image data could not be decoded: {name or '<bytes>'}", source=name)
        return arr

    @staticmethod
    def dimensions(arr: np.ndarray):
        """(width, height) of a decoded array."""
        return int(arr.shape[1]), int(arr.shape[0])

    @staticmethod
    def read_pixels(arr: np.ndarray) -> np.ndarray:
        """
        Convert a decoded OpenCV array to a read-only (H, W, 4) uint8 RGBA buffer.

        Raises:
            PixelAccessError: for layouts or sample types the buffer can't hold.
        """
        if arr.dtype == np.uint16:
            arr = (arr >> 8).astype(np.uint8)
        elif arr.dtype != np.uint8:
            raise PixelAccessError(f"Unsupported sample type: {arr.dtype}")

        channels = 1 if arr.ndim == 2 else arr.shape[2]
        code = _TO_RGBA.get(channels)
        if arr.ndim not in (2, 3) or code is None:
            raise PixelAccessError(f"Unsupported pixel layout: shape={arr.shape}")

        try:
            rgba = cv2.cvtColor(arr, code)
        except cv2.error as e:
            raise PixelAccessError(f"Pixel conversion failed: {e}") from e

        rgba = np.ascontiguousarray(rgba)
        rgba.setflags(write=False)
        return rgba

    @staticmethod
    def create_image(
        width: int,
        height: int,
        pixels: np.ndarray | None,
        file_name: str = "",
        path: Union[str, Path] = None,
    ) -> Image:
        return Image(
            width=width,
            height=height,
            pixels=pixels,
            file_name=file_name,
            path=Path(path) if path is not None else None,
        )
