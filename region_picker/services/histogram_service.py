import numpy as np

from ..models.histogram import BUCKETS, Histogram
from ..models.pixel_sample import PixelSample


class HistogramService:
    """Per-channel 256-bucket frequency counts over a pixel sample."""

    @staticmethod
    def _count(values: np.ndarray) -> np.ndarray:
        return np.bincount(values.astype(np.intp), minlength=BUCKETS)[:BUCKETS].astype(np.int64)

    def histogram(self, sample: PixelSample) -> Histogram:
        """
        Recompute the three channel histograms from scratch.
        An empty sample gives all-zero histograms.
        """
        if sample.is_empty:
            return Histogram()
        return Histogram(
            red=self._count(sample.rgb[:, 0]),
            green=self._count(sample.rgb[:, 1]),
            blue=self._count(sample.rgb[:, 2]),
        )
