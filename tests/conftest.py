from __future__ import annotations

from concurrent.futures import Executor, Future

import numpy as np
import pytest

from region_picker.models.image import Image
from region_picker.repositories.shape_repository import ShapeRepository


def make_image(rgb: np.ndarray, file_name: str = "test.png") -> Image:
    """Wrap an (H, W, 3) uint8 array as an opaque RGBA Image."""
    h, w = rgb.shape[:2]
    alpha = np.full((h, w, 1), 255, dtype=np.uint8)
    pixels = np.concatenate([rgb.astype(np.uint8), alpha], axis=2)
    pixels.setflags(write=False)
    return Image(width=w, height=h, pixels=pixels, file_name=file_name)


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, /, *args, **kwargs):
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Holds submitted work until run_all() is called."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_all(self):
        pending, self.pending = self.pending, []
        for future, fn, args, kwargs in pending:
            try:
                future.set_result(fn(*args, **kwargs))
            except BaseException as e:
                future.set_exception(e)


@pytest.fixture
def gradient_image() -> Image:
    """8x6 image where R = 10*x, G = 10*y, B = x + y."""
    ys, xs = np.mgrid[0:6, 0:8]
    rgb = np.stack([xs * 10, ys * 10, xs + ys], axis=2)
    return make_image(rgb, file_name="gradient.png")


@pytest.fixture
def red_image() -> Image:
    rgb = np.zeros((4, 5, 3), dtype=np.uint8)
    rgb[..., 0] = 255
    return make_image(rgb, file_name="red.png")


@pytest.fixture
def shape_repository(tmp_path) -> ShapeRepository:
    repo = ShapeRepository(database_url=f"sqlite:///{tmp_path / 'shapes.db'}")
    yield repo
    repo.dispose()
