"""
Snapshot capture: read the canvas pixels on the next idle pass and hand the
encoded data URL to the mirror.
"""
from __future__ import annotations

import logging
import tkinter as tk
from typing import Any, Callable, Optional

from PIL import Image

from src.capture.base_capture import ScreenCapture, widget_region
from src.capture.encoding import EMPTY_DATA_URL, mime_for_path, save_image, to_data_url
from src.capture.mss_capture import MSSCapture
from src.mirror.mirror_image import MirrorImage

LOGGER = logging.getLogger("CanvasMirror.Snapshot")


class SnapshotCapturer:
    """Fire-and-forget canvas capture into the mirror image."""

    def __init__(
        self,
        document: Any,
        surface_getter: Callable[[], Optional[Any]],
        mirror_getter: Callable[[], Optional[MirrorImage]],
        file_type: str,
        quality: float,
        capture: Optional[ScreenCapture] = None,
    ) -> None:
        self._document = document
        self._surface_getter = surface_getter
        self._mirror_getter = mirror_getter
        self._file_type = file_type
        self._quality = quality
        self._capture = capture if capture is not None else MSSCapture()
        self.pending = 0

    def trigger(self) -> None:
        try:
            self._document.after_idle(self._capture_now)
        except tk.TclError as exc:
            LOGGER.debug("Cannot queue capture: %s", exc)
            return
        self.pending += 1

    def _capture_now(self) -> None:
        self.pending = max(0, self.pending - 1)
        surface = self._surface_getter()
        mirror = self._mirror_getter()
        if surface is None or mirror is None or not mirror.exists():
            return
        try:
            region = widget_region(surface)
        except tk.TclError as exc:
            LOGGER.debug("Capture abandoned, canvas geometry unavailable: %s", exc)
            return
        if region.empty:
            data_url = EMPTY_DATA_URL
        else:
            try:
                image = self._capture.grab_image(region)
                data_url = to_data_url(image, self._file_type, self._quality) if image is not None else None
            except Exception as exc:
                LOGGER.debug("Capture abandoned: %s", exc)
                return
            if data_url is None:
                LOGGER.debug("Capture abandoned, no pixels grabbed from %s", region)
                return
        try:
            mirror.set_source(data_url)
        except tk.TclError as exc:
            LOGGER.debug("Mirror update abandoned: %s", exc)

    def _grab(self, surface: Any) -> Optional[Image.Image]:
        try:
            region = widget_region(surface)
        except tk.TclError as exc:
            LOGGER.debug("Canvas geometry unavailable: %s", exc)
            return None
        if region.empty:
            return None
        try:
            return self._capture.grab_image(region)
        except Exception as exc:
            LOGGER.debug("Screen grab failed: %s", exc)
            return None

    def snapshot(self) -> Optional[Image.Image]:
        """Grab the canvas content right now."""
        surface = self._surface_getter()
        if surface is None:
            return None
        return self._grab(surface)

    def to_data_url(self) -> Optional[str]:
        surface = self._surface_getter()
        if surface is None:
            return None
        return to_data_url(self._grab(surface), self._file_type, self._quality)

    def export(self, path: str, file_type: Optional[str] = None, quality: Optional[float] = None) -> Optional[str]:
        """
        Save the current canvas content to a file.

        Args:
            path: Destination file
            file_type: MIME type; defaults to the path suffix, then the configured type
            quality: 0-1 for lossy formats; defaults to the configured quality

        Returns:
            Absolute path written, or None if the canvas could not be read
        """
        image = self.snapshot()
        if image is None:
            return None
        written = save_image(
            image,
            path,
            file_type or mime_for_path(path) or self._file_type,
            self._quality if quality is None else quality,
        )
        LOGGER.info("Exported canvas snapshot to %s", written)
        return written

    def close(self) -> None:
        self._capture.close()
