from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk, filedialog, messagebox
from io import BytesIO
from typing import Dict, Optional

from PIL import Image, ImageTk

from ..models.geometry import DisplayRect, PointerEvent
from ..models.histogram import CHANNELS, Histogram
from ..pipeline.selection_session import SelectionSession
from ..services.chart_service import ChartService

logger = logging.getLogger(__name__)

STATUS_COLORS = {"info": "black", "success": "green", "error": "red"}
TICK_MS = 100


class RegionPickerWindow(tk.Tk):
    """
    Image canvas + histogram chart. Pointer events are forwarded to the
    SelectionSession; everything drawn comes back through its listeners.
    """

    def __init__(self) -> None:
        super().__init__()
        self.title("Region Picker")
        self.geometry("1100x800")

        self.chart_service = ChartService()
        self.session = SelectionSession(
            on_histogram=self._on_histogram,
            on_overlay=self._on_overlay,
            confirm=lambda question: messagebox.askyesno("Save selection", question, parent=self),
        )

        self._base: Optional[Image.Image] = None
        self._overlay: Optional[Image.Image] = None
        self._photo = None
        self._chart_photo = None
        self._display = DisplayRect(0, 0, 0, 0)
        self._render_after_id = None

        self._build()
        self.after(TICK_MS, self._tick)
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    # ─── layout ────────────────────────────────────────────────────────
    def _build(self) -> None:
        toolbar = ttk.Frame(self)
        toolbar.pack(side="top", fill="x", padx=8, pady=(8, 0))
        ttk.Button(toolbar, text="Open image…", command=self._on_open).pack(side="left")

        self.channel_vars: Dict[str, tk.BooleanVar] = {}
        for name in CHANNELS:
            var = tk.BooleanVar(value=True)
            self.channel_vars[name] = var
            ttk.Checkbutton(
                toolbar,
                text=name,
                variable=var,
                command=lambda n=name: self.session.set_channel_visible(n, self.channel_vars[n].get()),
            ).pack(side="left", padx=(10, 0))

        ttk.Button(toolbar, text="Save selection", command=self._on_save).pack(side="left", padx=(16, 0))
        self.save_msg = tk.Label(toolbar, text="", anchor="w")
        self.save_msg.pack(side="left", padx=(10, 0), fill="x", expand=True)

        self.info_var = tk.StringVar(value=self.session.info)
        ttk.Label(self, textvariable=self.info_var, anchor="w").pack(side="top", fill="x", padx=8, pady=(6, 0))

        self.canvas = tk.Canvas(self, background="#111", highlightthickness=1, highlightbackground="#333")
        self.canvas.pack(side="top", fill="both", expand=True, padx=8, pady=(6, 0))
        self.canvas.bind("<Configure>", self._on_canvas_configure)
        self.canvas.bind("<ButtonPress>", self._on_press)
        self.canvas.bind("<Motion>", self._on_motion)
        self.canvas.bind("<ButtonRelease-1>", self._on_release)
        self.canvas.bind("<Leave>", self._on_leave)

        self.chart_label = ttk.Label(self)
        self.chart_label.pack(side="bottom", fill="x", padx=8, pady=8)
        self._on_histogram(Histogram(), {name: True for name in CHANNELS})

    # ─── session listeners ─────────────────────────────────────────────
    def _on_histogram(self, histogram: Histogram, visible: Dict[str, bool]) -> None:
        png = self.chart_service.render(histogram, visible)
        self._chart_photo = ImageTk.PhotoImage(Image.open(BytesIO(png)))
        self.chart_label.configure(image=self._chart_photo)

    def _on_overlay(self, overlay: Image.Image) -> None:
        self._overlay = overlay
        self._render_image()

    # ─── rendering ─────────────────────────────────────────────────────
    def _on_canvas_configure(self, _evt=None):
        # Avoid thrashing when resizing: schedule a single re-render
        if self._render_after_id is not None:
            self.after_cancel(self._render_after_id)
        self._render_after_id = self.after(30, self._render_image)

    def _render_image(self) -> None:
        self._render_after_id = None
        self.canvas.delete("all")
        if self._base is None:
            return
        cw = max(10, self.canvas.winfo_width())
        ch = max(10, self.canvas.winfo_height())
        iw, ih = self._base.size
        scale = min(cw / iw, ch / ih)
        disp_w = max(1, int(iw * scale))
        disp_h = max(1, int(ih * scale))
        offx = (cw - disp_w) // 2
        offy = (ch - disp_h) // 2
        self._display = DisplayRect(offx, offy, disp_w, disp_h)

        frame = self._base
        if self._overlay is not None and self._overlay.size == frame.size:
            frame = self.session.overlay_service.compose(frame, self._overlay)
        self._photo = ImageTk.PhotoImage(frame.resize((disp_w, disp_h), Image.NEAREST))
        self.canvas.create_image(offx, offy, image=self._photo, anchor="nw", tags=("img",))

    # ─── input ─────────────────────────────────────────────────────────
    @staticmethod
    def _pointer(event, button: int = 0) -> PointerEvent:
        return PointerEvent(client_x=event.x, client_y=event.y, button=button)

    def _on_press(self, event):
        # Tk numbers buttons from 1 (left); pointer events use 0 for primary.
        self.session.pointer_down(self._pointer(event, event.num - 1), self._display)

    def _on_motion(self, event):
        self.session.pointer_move(self._pointer(event), self._display)
        self.info_var.set(self.session.info)

    def _on_release(self, event):
        self.session.pointer_up(self._pointer(event), self._display)
        self.info_var.set(self.session.info)

    def _on_leave(self, _event):
        self.session.pointer_leave()
        self.info_var.set(self.session.info)

    # ─── actions ───────────────────────────────────────────────────────
    def _on_open(self) -> None:
        exts = " ".join(f"*{ext}" for ext in sorted(self.session.image_service.image_repository.VALID_EXTS))
        path = filedialog.askopenfilename(parent=self, filetypes=[("Images", exts), ("All files", "*.*")])
        if not path:
            return
        if not self.session.image_service.is_supported(path):
            self.info_var.set(f"Unsupported file type: {path}")
            return
        if self.session.load_image(path):
            self._base = self.session.image_service.to_pil_image(self.session.image)
            self._render_image()
        self.info_var.set(self.session.info)

    def _on_save(self) -> None:
        self.session.save()
        self._refresh_status()

    def _refresh_status(self) -> None:
        status = self.session.status
        if status is None:
            self.save_msg.configure(text="")
        else:
            self.save_msg.configure(text=status.text, fg=STATUS_COLORS.get(status.level, "black"))

    def _tick(self) -> None:
        self.session.drain()
        self._refresh_status()
        self.after(TICK_MS, self._tick)

    def _on_close(self) -> None:
        self.session.close()
        self.destroy()


def main():
    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s",
        datefmt="%H:%M:%S"
    )
    logger.info("Starting Region Picker viewer")
    RegionPickerWindow().mainloop()


if __name__ == "__main__":
    main()
