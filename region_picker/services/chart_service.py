from __future__ import annotations
from io import BytesIO
from typing import Dict, Mapping

import matplotlib
matplotlib.use("Agg")
from matplotlib.figure import Figure
import numpy as np

from ..models.histogram import BUCKETS, CHANNELS, Histogram

CHANNEL_STYLE = {
    "R": ("Red", (1.0, 0.0, 0.0, 0.9)),
    "G": ("Green", (0.0, 160 / 255, 0.0, 0.9)),
    "B": ("Blue", (0.0, 0.0, 1.0, 0.9)),
}


def all_visible() -> Dict[str, bool]:
    return {name: True for name in CHANNELS}


class ChartService:
    """Renders the RGB histogram line chart; a pure function of its inputs."""

    def __init__(self, width_in: float = 6.4, height_in: float = 2.8, dpi: int = 100):
        self.width_in = width_in
        self.height_in = height_in
        self.dpi = dpi

    def render(self, histogram: Histogram, visible: Mapping[str, bool] | None = None) -> bytes:
        """
        Draw one line per visible channel and return the chart as PNG bytes.
        Hidden channels keep their legend entry so they can be toggled back.
        """
        visible = visible or all_visible()
        fig = Figure(figsize=(self.width_in, self.height_in), dpi=self.dpi)
        ax = fig.add_subplot(111)
        xs = np.arange(BUCKETS)

        for name in CHANNELS:
            label, color = CHANNEL_STYLE[name]
            line, = ax.plot(xs, histogram.channel(name), color=color, linewidth=1, label=label)
            line.set_visible(bool(visible.get(name, True)))

        ax.set_xlim(0, BUCKETS - 1)
        peak = max(int(histogram.channel(name).max()) for name in CHANNELS)
        ax.set_ylim(0, max(1, peak) * 1.05)
        ax.set_xlabel("Color value (0–255)")
        ax.set_ylabel("Pixel count")
        ax.legend(loc="upper right")
        fig.tight_layout()

        buffer = BytesIO()
        fig.savefig(buffer, format="png")
        return buffer.getvalue()
