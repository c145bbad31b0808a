from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image as PILImage

from region_picker.models.geometry import Rectangle
from region_picker.models.histogram import Histogram
from region_picker.services.chart_service import ChartService
from region_picker.services.overlay_service import FILL_COLOR, STROKE_COLOR, OverlayService


def test_no_rectangle_gives_transparent_overlay():
    overlay = OverlayService().render(None, (20, 10))
    assert overlay.mode == "RGBA"
    assert overlay.size == (20, 10)
    assert not np.asarray(overlay)[..., 3].any()


def test_point_and_line_rectangles_draw_nothing():
    service = OverlayService()
    for rect in (Rectangle(5, 5, 5, 5), Rectangle(2, 3, 9, 3)):
        assert not np.asarray(service.render(rect, (20, 10)))[..., 3].any()


def test_solid_outline_and_fill():
    overlay = np.asarray(OverlayService().render(Rectangle(2, 2, 15, 8), (20, 10), dashed=False))
    assert tuple(overlay[2, 8]) == STROKE_COLOR       # top edge
    assert tuple(overlay[5, 8]) == FILL_COLOR         # interior
    assert overlay[0, 0, 3] == 0                      # outside untouched


def test_dashed_outline_has_gaps():
    overlay = np.asarray(OverlayService().render(Rectangle(2, 2, 17, 7), (20, 10), dashed=True))
    stroked = [
        any(tuple(overlay[y, x]) == STROKE_COLOR for y in (1, 2, 3))
        for x in range(4, 16)
    ]
    assert any(stroked)
    assert not all(stroked)


def test_compose_layers_overlay_over_image():
    base = PILImage.new("RGB", (20, 10), (0, 0, 0))
    overlay = OverlayService().render(Rectangle(2, 2, 15, 8), (20, 10))
    composed = OverlayService.compose(base, overlay)
    assert composed.size == base.size
    assert composed.getpixel((8, 5))[1] > 0  # green tint inside the selection
    assert composed.getpixel((0, 0))[:3] == (0, 0, 0)


def test_chart_renders_png_for_empty_and_filled_histograms():
    service = ChartService(width_in=3, height_in=2, dpi=50)
    red = np.zeros(256, dtype=np.int64)
    red[255] = 12
    for hist in (Histogram(), Histogram(red=red)):
        png = service.render(hist, {"R": True, "G": False, "B": True})
        assert png.startswith(b"\x89PNG")
        assert PILImage.open(BytesIO(png)).size == (150, 100)
