from __future__ import annotations
import logging
import os
import queue
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Optional, Set, Union

from dotenv import load_dotenv
from PIL import Image as PILImage

from ..exceptions import DecodeError, TransportError
from ..models.geometry import DisplayRect, PointerEvent, Rectangle
from ..models.histogram import CHANNELS, Histogram
from ..models.image import Image
from ..models.pixel_sample import PixelSample
from ..models.shape_row import SaveResult
from ..models.status_message import StatusMessage
from ..services.coordinate_service import CoordinateService
from ..services.gateway_client import GatewayClient
from ..services.histogram_service import HistogramService
from ..services.image_service import ImageService
from ..services.overlay_service import OverlayService
from ..services.region_service import RegionService
from ..services.selection_service import SelectionService
from ..services.shape_service import ShapeService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

IDLE_READOUT = "x: -, y: - | R: -, G: -, B: -"
NO_DATA_READOUT = "No image data yet."

HistogramListener = Callable[[Histogram, Dict[str, bool]], None]
OverlayListener = Callable[[PILImage.Image], None]


class SelectionSession:
    """
    One user's interactive session: the loaded image, the drag selection, the
    histogram of the finalized selection, and save requests in flight.

    All handlers run to completion on the caller's thread. Saves run on the
    executor; their completion is handed back through `dispatch`. Without a
    dispatcher, completions wait in a queue until the owning thread calls
    `drain()`.
    """

    def __init__(
        self,
        image_service: ImageService | None = None,
        gateway_client: GatewayClient | None = None,
        executor: Executor | None = None,
        dispatch: Callable[[Callable[[], None]], None] | None = None,
        on_histogram: HistogramListener | None = None,
        on_overlay: OverlayListener | None = None,
        confirm: Callable[[str], bool] | None = None,
    ):
        self.image_service = image_service or ImageService()
        self.gateway_client = gateway_client or GatewayClient()
        self.executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="save")
        self._completions: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()
        self.dispatch = dispatch or self._completions.put
        self.on_histogram = on_histogram
        self.on_overlay = on_overlay
        self.confirm = confirm

        self.confirm_threshold = int(os.getenv("SAVE_CONFIRM_THRESHOLD", "20000"))
        self.status_ttl = float(os.getenv("STATUS_TTL_SECONDS", "3"))
        self.save_status_ttl = float(os.getenv("SAVE_STATUS_TTL_SECONDS", "5"))

        self.coordinate_service = CoordinateService()
        self.selection = SelectionService()
        self.region_service = RegionService()
        self.histogram_service = HistogramService()
        self.overlay_service = OverlayService()

        self.image: Image | None = None
        self.sample = PixelSample()
        self.histogram = Histogram()
        self.visible_channels: Dict[str, bool] = {name: True for name in CHANNELS}
        self.info = "Load an image to begin."
        self._status: StatusMessage | None = None
        self._in_flight: Set[Future] = set()

    # ─── image ─────────────────────────────────────────────────────────
    def load_image(self, path: Union[str, Path]) -> bool:
        try:
            image = self.image_service.load(path)
        except DecodeError as e:
            logger.warning(f"Image load failed: {e}")
            self.info = "Failed to load image."
            return False
        self._replace_image(image)
        return True

    def load_image_bytes(self, data: bytes, file_name: str) -> bool:
        try:
            image = self.image_service.load_bytes(data, file_name)
        except DecodeError as e:
            logger.warning(f"Image load failed: {e}")
            self.info = "Failed to load image."
            return False
        self._replace_image(image)
        return True

    def _replace_image(self, image: Image) -> None:
        self.image = image
        self.selection.reset()
        self.sample = PixelSample()
        self.histogram = Histogram()
        self._emit_overlay(None)
        self._emit_histogram()
        self.info = "Image loaded. Move mouse or drag to select area."

    # ─── pointer input ─────────────────────────────────────────────────
    def _map(self, event: PointerEvent, display_rect: DisplayRect):
        return self.coordinate_service.map(event, display_rect, self.image.width, self.image.height)

    def pointer_down(self, event: PointerEvent, display_rect: DisplayRect) -> None:
        if self.image is None:
            return
        selection_event = self.selection.pointer_down(self._map(event, display_rect), event.button)
        if selection_event is not None:
            self._emit_overlay(None)

    def pointer_move(self, event: PointerEvent, display_rect: DisplayRect) -> None:
        if self.image is None:
            self.info = NO_DATA_READOUT
            return
        point = self._map(event, display_rect)
        selection_event = self.selection.pointer_move(point)
        if selection_event is not None:
            self._emit_overlay(selection_event.rectangle, dashed=True)

        rgb = self.region_service.pixel_at(self.image, point.x, point.y)
        if rgb is None:
            self.info = NO_DATA_READOUT
            return
        r, g, b = rgb
        self.info = f"x: {point.x}, y: {point.y} | R: {r}, G: {g}, B: {b}"

    def pointer_up(self, event: PointerEvent, display_rect: DisplayRect) -> None:
        if self.image is None:
            return
        selection_event = self.selection.pointer_up(self._map(event, display_rect))
        if selection_event is not None:
            self._finalize(selection_event.rectangle)

    def pointer_leave(self) -> None:
        selection_event = self.selection.pointer_leave()
        if selection_event is None:
            self.info = IDLE_READOUT
            return
        self._finalize(selection_event.rectangle)

    def _finalize(self, rectangle: Rectangle) -> None:
        self.sample = self.region_service.sample(rectangle, self.image)
        self.histogram = self.histogram_service.histogram(self.sample)
        self._emit_histogram()
        self._emit_overlay(rectangle, dashed=False)
        self.info = (
            f"Selected rect: x1={rectangle.x1}, y1={rectangle.y1}, "
            f"x2={rectangle.x2}, y2={rectangle.y2}"
        )

    # ─── display ───────────────────────────────────────────────────────
    def set_channel_visible(self, channel: str, visible: bool) -> None:
        if channel not in self.visible_channels:
            raise KeyError(f"Unknown channel: {channel}")
        self.visible_channels[channel] = bool(visible)
        self._emit_histogram()

    def _emit_histogram(self) -> None:
        if self.on_histogram is not None:
            self.on_histogram(self.histogram, dict(self.visible_channels))

    def _emit_overlay(self, rectangle: Rectangle | None, dashed: bool = False) -> None:
        if self.on_overlay is None or self.image is None:
            return
        self.on_overlay(self.overlay_service.render(rectangle, (self.image.width, self.image.height), dashed=dashed))

    # ─── status ────────────────────────────────────────────────────────
    @property
    def status(self) -> Optional[StatusMessage]:
        if self._status is not None and self._status.is_expired():
            self._status = None
        return self._status

    def _set_status(self, text: str, level: str, ttl: float | None) -> None:
        if ttl is None:
            self._status = StatusMessage(text=text, level=level)
        else:
            self._status = StatusMessage.transient(text, level, ttl)

    # ─── save ──────────────────────────────────────────────────────────
    @property
    def saves_in_flight(self) -> int:
        return len(self._in_flight)

    def save(self) -> Optional[Future]:
        """
        Snapshot the selection as rows and send them without blocking.

        Returns:
            The pending request, or None if nothing was sent.
        """
        rectangle = self.selection.rectangle
        if self.image is None or rectangle is None or rectangle.is_empty:
            self._set_status("Draw a rectangle first.", "error", self.status_ttl)
            return None

        rows = ShapeService.build_rows(self.sample, self.image.file_name)
        if not rows:
            self._set_status("No pixels found in selection.", "error", self.status_ttl)
            return None

        if len(rows) > self.confirm_threshold and self.confirm is not None:
            question = f"Selection contains {len(rows)} pixels. This may be slow to save. Continue?"
            if not self.confirm(question):
                return None

        self._set_status("Saving...", "info", None)
        logger.info(f"Saving {len(rows)} rows from {self.image.file_name} {rectangle.as_dict()}")
        future = self.executor.submit(self.gateway_client.save_rows, rows)
        self._in_flight.add(future)
        future.add_done_callback(lambda f: self.dispatch(lambda: self._on_save_done(f)))
        return future

    def _on_save_done(self, future: Future) -> None:
        self._in_flight.discard(future)
        try:
            result: SaveResult = future.result()
        except TransportError as e:
            self._set_status(f"Network/error: {e.message}", "error", self.save_status_ttl)
            return
        except Exception as e:
            logger.error(f"Save failed unexpectedly: {e}")
            self._set_status(f"Network/error: {e}", "error", self.save_status_ttl)
            return

        if result.success:
            self._set_status(f"Saved {result.inserted} rows.", "success", self.save_status_ttl)
        else:
            logger.warning(f"Save rejected: {result.error}")
            self._set_status(f"Save failed: {result.error or 'unknown'}", "error", self.save_status_ttl)

    def drain(self) -> int:
        """Apply queued save completions on the calling thread; returns how many ran."""
        ran = 0
        while True:
            try:
                completion = self._completions.get_nowait()
            except queue.Empty:
                return ran
            completion()
            ran += 1

    def close(self) -> None:
        self.executor.shutdown(wait=False)
